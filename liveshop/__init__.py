"""LiveShop commerce core: cart, wishlist, pricing and checkout"""

__version__ = "1.0.0"
