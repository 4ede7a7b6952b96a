"""
VitrineTurbo - Internacionalização
Idiomas suportados, formatação de moeda e rótulos das mensagens
"""
import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "pt-BR"
DEFAULT_CURRENCY = "BRL"

SUPPORTED_LANGUAGES = ("pt-BR", "en-US", "es-ES")

CURRENCY_SYMBOLS = {
    "BRL": "R$",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

# Separadores e posição do símbolo por idioma
LOCALE_CONFIGS = {
    "pt-BR": {
        "decimal_separator": ",",
        "thousands_separator": ".",
        "currency_pattern": "{symbol} {amount}",
    },
    "en-US": {
        "decimal_separator": ".",
        "thousands_separator": ",",
        "currency_pattern": "{symbol}{amount}",
    },
    "es-ES": {
        "decimal_separator": ",",
        "thousands_separator": ".",
        "currency_pattern": "{amount} {symbol}",
    },
}

# Rótulos da mensagem de pedido
ORDER_LABELS = {
    "pt-BR": {
        "greeting": "Olá {seller}, gostaria de realizar um pedido com os itens abaixo.",
        "order_title": "PEDIDO DE COMPRA",
        "variant": "Variação",
        "quantity": "Quantidade",
        "unit_price": "Preço unitário",
        "subtotal": "Subtotal",
        "notes": "Observação",
        "total": "TOTAL",
        "footer": "Aguardo retorno com informações sobre pagamento e entrega.",
    },
    "en-US": {
        "greeting": "Hello {seller}, I would like to place an order with the items below.",
        "order_title": "PURCHASE ORDER",
        "variant": "Variant",
        "quantity": "Quantity",
        "unit_price": "Unit price",
        "subtotal": "Subtotal",
        "notes": "Notes",
        "total": "TOTAL",
        "footer": "I await your response with payment and delivery information.",
    },
    "es-ES": {
        "greeting": "Hola {seller}, me gustaría realizar un pedido con los artículos a continuación.",
        "order_title": "ORDEN DE COMPRA",
        "variant": "Variación",
        "quantity": "Cantidad",
        "unit_price": "Precio unitario",
        "subtotal": "Subtotal",
        "notes": "Observación",
        "total": "TOTAL",
        "footer": "Espero su respuesta con información de pago y entrega.",
    },
}


def resolve_language(language: Optional[str]) -> str:
    """Idioma suportado ou pt-BR"""
    if language in SUPPORTED_LANGUAGES:
        return language
    if language:
        logger.debug(f"Idioma {language} não suportado, usando {DEFAULT_LANGUAGE}")
    return DEFAULT_LANGUAGE


def get_locale_config(language: Optional[str]) -> dict:
    return LOCALE_CONFIGS[resolve_language(language)]


def get_order_labels(language: Optional[str]) -> dict:
    return ORDER_LABELS[resolve_language(language)]


def format_currency(value, currency: str = DEFAULT_CURRENCY, language: str = DEFAULT_LANGUAGE) -> str:
    """
    Formata valor monetário de forma determinística.
    Moeda desconhecida: cai para BRL no formato pt-BR.
    """
    if currency not in CURRENCY_SYMBOLS:
        currency, language = DEFAULT_CURRENCY, DEFAULT_LANGUAGE

    config = get_locale_config(language)
    value = float(value or 0)

    amount = f"{abs(value):,.2f}"
    amount = (
        amount.replace(",", "X")
        .replace(".", config["decimal_separator"])
        .replace("X", config["thousands_separator"])
    )

    text = config["currency_pattern"].format(symbol=CURRENCY_SYMBOLS[currency], amount=amount)
    return f"-{text}" if value < 0 else text


def generate_whatsapp_message(
    language: str,
    seller_name: str,
    item_title: Optional[str] = None,
    item_id: Optional[str] = None,
) -> str:
    """Mensagem de contato para um produto ou para a vitrine"""
    ref = (item_id or "")[:8]
    messages = {
        "pt-BR": (
            f'Olá {seller_name}, estou interessado no produto "{item_title}" (Ref: {ref}). Pode me enviar mais informações?'
            if item_title else
            f"Olá {seller_name}, vi sua vitrine e gostaria de mais informações sobre seus produtos."
        ),
        "en-US": (
            f'Hello {seller_name}, I\'m interested in the product "{item_title}" (Ref: {ref}). Can you send me more information?'
            if item_title else
            f"Hello {seller_name}, I saw your storefront and would like more information about your products."
        ),
        "es-ES": (
            f'Hola {seller_name}, estoy interesado en el producto "{item_title}" (Ref: {ref}). ¿Puedes enviarme más información?'
            if item_title else
            f"Hola {seller_name}, vi tu escaparate y me gustaría más información sobre tus productos."
        ),
    }
    return messages[resolve_language(language)]
