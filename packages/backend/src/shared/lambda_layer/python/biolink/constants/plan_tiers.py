"""
Centralized plan tier configuration constants.

Every plan limit and price lives here so the entitlement table, the pricing
endpoint and the theme catalog agree on the same numbers.
"""

# Sentinel for "no practical ceiling". Stored and compared as a plain integer.
UNLIMITED = 999

# Free Tier Configuration
FREE_MAX_LINKS = 3
FREE_MAX_PRODUCTS = 2
FREE_QR_CODE_COLORS = 2

# Pro Tier Configuration
PRO_MAX_LINKS = UNLIMITED
PRO_MAX_PRODUCTS = UNLIMITED
PRO_QR_CODE_COLORS = 7
PRO_PRICE_TWD = 3600

# Enterprise Tier Configuration
ENTERPRISE_MAX_LINKS = UNLIMITED
ENTERPRISE_MAX_PRODUCTS = UNLIMITED
ENTERPRISE_QR_CODE_COLORS = UNLIMITED
ENTERPRISE_PRICE_TWD = 9900

# Pricing Configuration
CURRENCY = "TWD"
CURRENCY_SYMBOL = "NT$"
LIFETIME_PRICE_NOTE = "One-time purchase"

# Plan descriptions for the comparison page
FREE_DESCRIPTION = "Great for trying it out"
PRO_DESCRIPTION = "For personal brands and small shops"
ENTERPRISE_DESCRIPTION = "For companies and teams"

UPGRADE_URL = "/upgrade"
