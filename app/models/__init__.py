from .stock_item import StockItem

# This ensures all models are registered with SQLAlchemy
