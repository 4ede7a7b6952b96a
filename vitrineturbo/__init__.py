"""
VitrineTurbo - vitrines de produtos com pedidos via WhatsApp
"""
__version__ = "1.0.0"
