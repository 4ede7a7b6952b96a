"""
VitrineTurbo - Cart Service
Totais do carrinho, mensagem de pedido para WhatsApp e estado do carrinho
"""
import re
import json
import logging
from typing import List, Optional, Iterable
from urllib.parse import urlsplit, quote

from pydantic import ValidationError

from vitrineturbo.core.config import settings
from vitrineturbo.core.session_store import Storage, storage_keys
from vitrineturbo.schemas.cart import CartItem, CartStats
from vitrineturbo.services.i18n import (
    DEFAULT_CURRENCY,
    DEFAULT_LANGUAGE,
    format_currency,
    get_order_labels,
)

logger = logging.getLogger(__name__)

SEPARATOR_LINE = "━━━━━━━━━━━━━━━━━━━━━━━━━━"


def calculate_cart_stats(items: Iterable[CartItem]) -> CartStats:
    """Quantidade total de itens e valor total (com desconto)"""
    item_count = 0
    total = 0.0
    for item in items:
        item_count += item.quantity
        total += item.effective_price * item.quantity
    return CartStats(item_count=item_count, total=total)


def validate_cart_item(item: CartItem) -> bool:
    """Item só entra no carrinho com id, título, preço e quantidade positivos"""
    return bool(item.id and item.title and item.price > 0 and item.quantity > 0)


def _is_production_host(hostname: str) -> bool:
    if hostname in settings.PRODUCTION_HOSTNAMES:
        return True
    return any(
        hostname == suffix or hostname.endswith(f".{suffix}")
        for suffix in settings.PRODUCTION_HOST_SUFFIXES
    )


def resolve_public_origin(origin: Optional[str] = None) -> str:
    """
    Origem usada nos links de produto: domínio canônico quando a requisição
    vem de um host de produção, senão a própria origem da requisição.
    """
    canonical = settings.PUBLIC_SITE_URL.rstrip("/")
    if not origin:
        return canonical

    hostname = (urlsplit(origin).hostname or "").lower()
    if not hostname or _is_production_host(hostname):
        return canonical
    return origin.rstrip("/")


def build_product_url(slug: str, product_id: str, origin: Optional[str] = None) -> str:
    return f"{resolve_public_origin(origin)}/{slug}/produtos/{product_id}"


def generate_cart_order_message(
    items: List[CartItem],
    total: float,
    seller_name: str,
    slug: str,
    currency: str = DEFAULT_CURRENCY,
    language: str = DEFAULT_LANGUAGE,
    origin: Optional[str] = None,
) -> str:
    """
    Gera o texto do pedido enviado ao vendedor pelo WhatsApp.
    Mesmas entradas sempre produzem o mesmo texto. Carrinho vazio: "".
    """
    if not items:
        return ""

    labels = get_order_labels(language)

    def money(value: float) -> str:
        return format_currency(value, currency, language)

    lines = [
        labels["greeting"].format(seller=seller_name),
        "",
        f"*{labels['order_title']}*",
        SEPARATOR_LINE,
        "",
    ]

    for index, item in enumerate(items, start=1):
        price = item.effective_price
        lines.append(f"{index}. *{item.title.strip()}*")

        variant = " • ".join(v for v in (item.selected_color, item.selected_size) if v)
        if variant:
            lines.append(f"   {labels['variant']}: {variant}")

        if slug:
            lines.append(build_product_url(slug, item.id, origin))

        lines.append(f"   {labels['quantity']}: {item.quantity}")
        lines.append(f"   {labels['unit_price']}: {money(price)}")
        lines.append(f"   {labels['subtotal']}: {money(price * item.quantity)}")

        if item.notes and item.notes.strip():
            lines.append(f"   {labels['notes']}: {item.notes}")

        lines.append("")

    lines.append(SEPARATOR_LINE)
    lines.append(f"*{labels['total']}: {money(total)}*")
    lines.append("")
    lines.append(labels["footer"])

    return "\n".join(lines)


# ============================================
# WHATSAPP
# ============================================

def clean_whatsapp_number(phone: Optional[str]) -> str:
    """Número brasileiro com DDD (10 ou 11 dígitos), sem código do país"""
    if not phone:
        return ""

    numbers = re.sub(r"\D", "", phone)
    if len(numbers) in (12, 13) and numbers.startswith(settings.WHATSAPP_COUNTRY_CODE):
        numbers = numbers[len(settings.WHATSAPP_COUNTRY_CODE):]

    if len(numbers) not in (10, 11):
        logger.warning(f"Número de WhatsApp com tamanho inválido: {len(numbers)} dígitos")
    return numbers


def generate_whatsapp_url(phone: Optional[str], message: str = "") -> str:
    """Link wa.me com a mensagem pré-preenchida; "#" se não houver número"""
    number = clean_whatsapp_number(phone)
    if not number:
        return "#"

    url = f"https://wa.me/{settings.WHATSAPP_COUNTRY_CODE}{number}"
    if message:
        url += f"?text={quote(message, safe='')}"
    return url


# ============================================
# ESTADO DO CARRINHO
# ============================================

def generate_variant_id(product_id: str, color: Optional[str] = None, size: Optional[str] = None) -> str:
    return f"{product_id}-{color or 'no-color'}-{size or 'no-size'}"


class Cart:
    """Lista de itens do carrinho, uma linha por variação (produto + cor + tamanho)"""

    def __init__(self, items: Optional[List[CartItem]] = None):
        self.items: List[CartItem] = []
        for item in items or []:
            item = item.model_copy()
            if not item.variant_id:
                item.variant_id = generate_variant_id(item.id, item.selected_color, item.selected_size)
            self.items.append(item)

    def _find(self, variant_id: str) -> Optional[CartItem]:
        return next((i for i in self.items if i.variant_id == variant_id), None)

    @property
    def stats(self) -> CartStats:
        return calculate_cart_stats(self.items)

    def add(self, item: CartItem) -> CartItem:
        """Adiciona um produto; se a variação já existe, soma 1 à quantidade"""
        if not validate_cart_item(item):
            raise ValueError("Este produto não pode ser adicionado ao carrinho pois não possui preço definido.")

        variant_id = generate_variant_id(item.id, item.selected_color, item.selected_size)
        existing = self._find(variant_id)
        if existing:
            existing.quantity += 1
            return existing

        new_item = item.model_copy(update={"variant_id": variant_id, "quantity": 1})
        self.items.append(new_item)
        return new_item

    def remove_product(self, product_id: str) -> None:
        self.items = [i for i in self.items if i.id != product_id]

    def remove_variant(self, variant_id: str) -> None:
        self.items = [i for i in self.items if i.variant_id != variant_id]

    def update_variant_quantity(self, variant_id: str, quantity: int) -> None:
        """Quantidade <= 0 remove a variação"""
        if quantity <= 0:
            self.remove_variant(variant_id)
            return
        item = self._find(variant_id)
        if item:
            item.quantity = quantity

    def update_notes(self, variant_id: str, notes: str) -> None:
        item = self._find(variant_id)
        if item:
            item.notes = notes

    def update_variant_options(self, variant_id: str, color: Optional[str] = None, size: Optional[str] = None) -> None:
        """Troca cor/tamanho; se a nova variação já existe, as quantidades são somadas"""
        item = self._find(variant_id)
        if not item:
            return

        new_variant_id = generate_variant_id(item.id, color, size)
        if new_variant_id == variant_id:
            return

        target = self._find(new_variant_id)
        if target:
            target.quantity += item.quantity
            self.remove_variant(variant_id)
        else:
            item.variant_id = new_variant_id
            item.selected_color = color
            item.selected_size = size

    def get_item_quantity(self, product_id: str) -> int:
        return sum(i.quantity for i in self.items if i.id == product_id)

    def get_variant_quantity(self, product_id: str, color: Optional[str] = None, size: Optional[str] = None) -> int:
        item = self._find(generate_variant_id(product_id, color, size))
        return item.quantity if item else 0

    def clear(self) -> None:
        self.items = []

    def to_dict(self) -> dict:
        stats = self.stats
        return {
            "items": [i.model_dump() for i in self.items],
            "total": stats.total,
            "itemCount": stats.item_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Cart":
        return cls([CartItem.model_validate(i) for i in data.get("items", [])])


def load_cart(storage: Storage) -> Cart:
    """Carrinho salvo; dado corrompido é descartado"""
    key = storage_keys()["CART"]
    raw = storage.get_item(key)
    if not raw:
        return Cart()
    try:
        return Cart.from_dict(json.loads(raw))
    except (ValueError, ValidationError, AttributeError) as e:
        logger.error(f"Erro ao carregar carrinho: {e}")
        storage.remove_item(key)
        return Cart()


def save_cart(storage: Storage, cart: Cart) -> None:
    storage.set_item(storage_keys()["CART"], json.dumps(cart.to_dict()))
