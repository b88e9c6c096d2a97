from .product import Product
from .event import Event
