"""BizBud multi-tenant site platform: sessions, authorization and tenant isolation"""

__version__ = "1.0.0"
