from oss_gateway.routers.oss import router as oss_router

__all__ = ["oss_router"]
