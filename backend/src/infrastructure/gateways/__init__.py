from .http_gateway import GatewayError, HttpGateway, NotificationGateway, ReviewQueueGateway

__all__ = ["GatewayError", "HttpGateway", "NotificationGateway", "ReviewQueueGateway"]
