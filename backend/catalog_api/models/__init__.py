from .section import Section
from .category import Category
from .product import Product, ProductStatus
from .promo_code import PromoCode
