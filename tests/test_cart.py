import json

import pytest

from vitrineturbo.core import MemoryStorage
from vitrineturbo.schemas import CartItem
from vitrineturbo.services.cart import (
    SEPARATOR_LINE,
    Cart,
    calculate_cart_stats,
    validate_cart_item,
    resolve_public_origin,
    build_product_url,
    generate_cart_order_message,
    clean_whatsapp_number,
    generate_whatsapp_url,
    generate_variant_id,
    load_cart,
    save_cart,
)
from vitrineturbo.services.i18n import format_currency, generate_whatsapp_message


def item(**kwargs) -> CartItem:
    data = {"id": "p1", "title": "Camiseta", "price": 100.0}
    data.update(kwargs)
    return CartItem(**data)


# ============================================
# TOTAIS
# ============================================

def test_stats_sum_quantities_and_effective_prices():
    items = [
        item(id="a", price=100, discounted_price=80, quantity=2),
        item(id="b", price=50, quantity=3),
        item(id="c", price=30, discounted_price=40, quantity=1),  # desconto maior que o preço: ignorado
        item(id="d", price=20, discounted_price=0, quantity=1),   # desconto zero: ignorado
    ]

    stats = calculate_cart_stats(items)

    assert stats.item_count == 7
    assert stats.total == pytest.approx(160 + 150 + 30 + 20)


def test_stats_empty_cart():
    stats = calculate_cart_stats([])
    assert stats.item_count == 0
    assert stats.total == 0


def test_validate_cart_item():
    assert validate_cart_item(item())
    assert not validate_cart_item(item(price=0))
    assert not validate_cart_item(item(title=""))


# ============================================
# MENSAGEM DO PEDIDO
# ============================================

def test_english_order_message_scenario():
    items = [item(price=100, discounted_price=80, quantity=2)]
    stats = calculate_cart_stats(items)

    message = generate_cart_order_message(items, stats.total, "Ana", "loja-ana", language="en-US")

    assert stats.total == 160
    assert "   Unit price: R$80.00" in message
    assert "   Subtotal: R$160.00" in message
    assert "*TOTAL: R$160.00*" in message


def test_order_message_layout():
    items = [
        item(id="p1", title=" Camiseta ", price=100, discounted_price=80, quantity=2,
             selected_color="Azul", selected_size="M", notes="Presente"),
        item(id="p2", title="Boné", price=50, quantity=1),
    ]

    message = generate_cart_order_message(
        items, 210.0, "Ana", "loja-ana", origin="http://localhost:5173"
    )

    assert message.split("\n") == [
        "Olá Ana, gostaria de realizar um pedido com os itens abaixo.",
        "",
        "*PEDIDO DE COMPRA*",
        SEPARATOR_LINE,
        "",
        "1. *Camiseta*",
        "   Variação: Azul • M",
        "http://localhost:5173/loja-ana/produtos/p1",
        "   Quantidade: 2",
        "   Preço unitário: R$ 80,00",
        "   Subtotal: R$ 160,00",
        "   Observação: Presente",
        "",
        "2. *Boné*",
        "http://localhost:5173/loja-ana/produtos/p2",
        "   Quantidade: 1",
        "   Preço unitário: R$ 50,00",
        "   Subtotal: R$ 50,00",
        "",
        SEPARATOR_LINE,
        "*TOTAL: R$ 210,00*",
        "",
        "Aguardo retorno com informações sobre pagamento e entrega.",
    ]


def test_order_message_without_slug_has_no_links():
    message = generate_cart_order_message([item()], 100.0, "Ana", "")
    assert "/produtos/" not in message


def test_order_message_is_deterministic():
    items = [item(quantity=3, selected_size="G")]
    first = generate_cart_order_message(items, 300.0, "Ana", "loja", "USD", "es-ES")
    second = generate_cart_order_message(items, 300.0, "Ana", "loja", "USD", "es-ES")
    assert first == second
    assert "*TOTAL: 300,00 $*" in first


def test_unsupported_language_falls_back_to_portuguese():
    items = [item()]
    assert generate_cart_order_message(items, 100.0, "Ana", "loja", language="fr-FR") == \
        generate_cart_order_message(items, 100.0, "Ana", "loja", language="pt-BR")


def test_empty_cart_message_is_empty():
    assert generate_cart_order_message([], 0, "Ana", "loja") == ""


@pytest.mark.parametrize("origin,expected", [
    (None, "https://vitrineturbo.com"),
    ("https://vitrineturbo.com", "https://vitrineturbo.com"),
    ("https://minha-loja.netlify.app", "https://vitrineturbo.com"),
    ("https://preview.vercel.app/", "https://vitrineturbo.com"),
    ("http://localhost:5173/", "http://localhost:5173"),
    ("https://notvercel.app", "https://notvercel.app"),
    ("https://vitrineturbo.com.evil.io", "https://vitrineturbo.com.evil.io"),
])
def test_resolve_public_origin(origin, expected):
    assert resolve_public_origin(origin) == expected


def test_build_product_url():
    assert build_product_url("loja", "p1", "https://x.netlify.app") == "https://vitrineturbo.com/loja/produtos/p1"


# ============================================
# MOEDA
# ============================================

@pytest.mark.parametrize("value,currency,language,expected", [
    (1234.56, "BRL", "pt-BR", "R$ 1.234,56"),
    (1234.56, "USD", "en-US", "$1,234.56"),
    (1234.56, "EUR", "es-ES", "1.234,56 €"),
    (10, "BRL", "xx-XX", "R$ 10,00"),
    (10, "JPY", "en-US", "R$ 10,00"),
    (-5, "BRL", "pt-BR", "-R$ 5,00"),
    (None, "BRL", "pt-BR", "R$ 0,00"),
])
def test_format_currency(value, currency, language, expected):
    assert format_currency(value, currency, language) == expected


# ============================================
# WHATSAPP
# ============================================

@pytest.mark.parametrize("phone,expected", [
    ("(11) 98765-4321", "11987654321"),
    ("+55 11 98765-4321", "11987654321"),
    ("1133334444", "1133334444"),
    (None, ""),
])
def test_clean_whatsapp_number(phone, expected):
    assert clean_whatsapp_number(phone) == expected


def test_generate_whatsapp_url():
    assert generate_whatsapp_url("(11) 98765-4321", "Olá *Ana*") == \
        "https://wa.me/5511987654321?text=Ol%C3%A1%20%2AAna%2A"
    assert generate_whatsapp_url("11987654321") == "https://wa.me/5511987654321"
    assert generate_whatsapp_url("") == "#"


def test_generate_whatsapp_message():
    message = generate_whatsapp_message("en-US", "Ana", "Camiseta", "1234567890")
    assert message == 'Hello Ana, I\'m interested in the product "Camiseta" (Ref: 12345678). Can you send me more information?'
    assert generate_whatsapp_message("fr-FR", "Ana").startswith("Olá Ana, vi sua vitrine")


# ============================================
# CARRINHO
# ============================================

def test_cart_add_merges_same_variant():
    cart = Cart()
    cart.add(item(selected_color="Azul"))
    cart.add(item(selected_color="Azul"))
    cart.add(item(selected_color="Preto"))

    assert cart.get_item_quantity("p1") == 3
    assert cart.get_variant_quantity("p1", "Azul") == 2
    assert len(cart.items) == 2


def test_cart_add_rejects_item_without_price():
    with pytest.raises(ValueError):
        Cart().add(item(price=0))


def test_cart_update_variant_options_merges_quantities():
    cart = Cart()
    azul = cart.add(item(selected_color="Azul"))
    cart.update_variant_quantity(azul.variant_id, 3)
    preto = cart.add(item(selected_color="Preto"))
    cart.update_variant_quantity(preto.variant_id, 2)

    cart.update_variant_options(azul.variant_id, color="Preto")

    assert len(cart.items) == 1
    assert cart.get_variant_quantity("p1", "Preto") == 5


def test_cart_update_variant_options_renames_variant():
    cart = Cart()
    line = cart.add(item(selected_size="P"))

    cart.update_variant_options(line.variant_id, size="G")

    assert cart.items[0].variant_id == generate_variant_id("p1", None, "G")
    assert cart.items[0].selected_size == "G"


def test_cart_quantity_zero_removes_variant():
    cart = Cart()
    line = cart.add(item())
    cart.update_notes(line.variant_id, "sem etiqueta")
    assert cart.items[0].notes == "sem etiqueta"

    cart.update_variant_quantity(line.variant_id, 0)
    assert cart.items == []


def test_cart_does_not_mutate_caller_items():
    original = item(quantity=2, variant_id="p1-no-color-no-size")
    cart = Cart([original])

    cart.update_variant_quantity("p1-no-color-no-size", 5)
    cart.add(item())

    assert cart.items[0].quantity == 6
    assert original.quantity == 2


def test_cart_persistence_round_trip_and_corruption():
    storage = MemoryStorage()
    cart = Cart()
    cart.add(item(discounted_price=90))
    save_cart(storage, cart)

    raw = json.loads(storage.get_item("vitrineturbo_cart"))
    assert raw["itemCount"] == 1
    assert raw["total"] == 90

    assert load_cart(storage).stats.total == 90

    storage.set_item("vitrineturbo_cart", "{corrompido")
    assert load_cart(storage).items == []
    assert storage.get_item("vitrineturbo_cart") is None
