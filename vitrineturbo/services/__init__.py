"""
VitrineTurbo - Services
"""
