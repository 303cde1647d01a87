"""querywait - poll a query until a record-count condition holds"""

__version__ = "0.1.0"
