"""Order calculation routes"""
from typing import Callable

from aws_lambda_powertools import Logger, Tracer, Metrics

from services.factory import build_order_calculation_service
from services.order_calculation_service import OrderCalculationService

logger = Logger()
tracer = Tracer()
metrics = Metrics()

# HTTP status per PricingError.error_type
ERROR_STATUS = {
    "InvalidOrderError": 400,
    "CatalogMismatchError": 404,
    "DeliveryError": 422,
    "DistanceUnavailableError": 422,
    "DeliveryRadiusExceededError": 422,
    "DeliveryQuoteError": 502,
    "ConfigurationError": 500,
}


def status_for(error_type: str) -> int:
    return ERROR_STATUS.get(error_type, 500)


def invalid_body() -> dict:
    return {"success": False, "data": None, "error": "Request body must be valid JSON", "errorType": "InvalidOrderError"}


def register_order_routes(app, service_factory: Callable[[], OrderCalculationService] = build_order_calculation_service):
    """Register order calculation routes"""

    @app.post("/api/v1/orders/calculate")
    @tracer.capture_method
    def calculate_order():
        """Price an order: items, taxes, delivery fee, platform fee and total"""
        try:
            body = app.current_event.json_body
        except ValueError:
            return invalid_body(), 400

        try:
            if isinstance(body, dict):
                logger.info(f"🧮 Order calculation request for restaurant {body.get('restaurantId')}")

            envelope = service_factory().calculate_safe(body)

            if not envelope["success"]:
                status = status_for(envelope["errorType"])
                metrics.add_metric(name="OrderCalculationFailed", unit="Count", value=1)
                logger.warning(f"Order calculation rejected ({status}): {envelope['error']}")
                return envelope, status

            metrics.add_metric(name="OrderCalculated", unit="Count", value=1)
            return envelope, 200
        except Exception as e:
            logger.error("Order calculation failed unexpectedly", exc_info=True)
            metrics.add_metric(name="OrderCalculationFailed", unit="Count", value=1)
            return {
                "success": False,
                "data": None,
                "error": "Failed to calculate order",
                "errorType": type(e).__name__,
            }, 500
