from .catalog import Product
from .network import Warehouse, Distributor
from .auth import User
from .inventory import WarehouseInventory, DistributorStock
from .orders import Order, OrderLine, OrderStatusHistory
from .sales import Sale, SaleItem, CustomerOrder, CustomerOrderItem
from .activity import ActivityLog

__all__ = [
    'Product',
    'Warehouse', 'Distributor',
    'User',
    'WarehouseInventory', 'DistributorStock',
    'Order', 'OrderLine', 'OrderStatusHistory',
    'Sale', 'SaleItem', 'CustomerOrder', 'CustomerOrderItem',
    'ActivityLog',
]
