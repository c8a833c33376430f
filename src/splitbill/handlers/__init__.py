from splitbill.handlers.basic import basic_router
from splitbill.handlers.bills import bills_router
from splitbill.handlers.receipt import receipt_router
from splitbill.handlers.splitting import splitting_router

__all__ = ["basic_router", "bills_router", "receipt_router", "splitting_router"]
