"""Delivery fee calculation routes"""
from typing import Callable

from aws_lambda_powertools import Logger, Tracer, Metrics

from models.location import Coordinates
from routes.order_routes import status_for
from services.factory import build_order_calculation_service
from services.order_calculation_service import OrderCalculationService
from utils.errors import InvalidOrderError, PricingError
from utils.parsing import to_float

logger = Logger()
tracer = Tracer()
metrics = Metrics()


def register_delivery_routes(app, service_factory: Callable[[], OrderCalculationService] = build_order_calculation_service):
    """Register delivery fee calculation routes"""

    @app.post("/api/v1/delivery/calculate-fee")
    @tracer.capture_method
    def calculate_fee():
        """Quote the delivery fee from a restaurant to a destination"""
        try:
            body = app.current_event.json_body
        except ValueError:
            return {"success": False, "data": None, "error": "Request body must be valid JSON",
                    "errorType": InvalidOrderError.error_type}, 400

        try:
            if not isinstance(body, dict):
                raise InvalidOrderError("Request body must be a JSON object")

            restaurant_id = body.get('restaurantId')
            if not restaurant_id:
                raise InvalidOrderError("restaurantId is required")

            delivery_address = body.get('deliveryAddress') or None
            delivery_coordinates = Coordinates.from_dict(body.get('deliveryCoordinates'))
            if not delivery_address and not delivery_coordinates:
                raise InvalidOrderError("deliveryAddress or deliveryCoordinates is required")

            order_value = body.get('orderValue')
            if order_value is not None:
                order_value = to_float(order_value, "orderValue", InvalidOrderError)

            logger.info(f"📦 Delivery fee request for restaurant {restaurant_id}")

            result = service_factory().calculate_delivery_fee(
                restaurant_id,
                delivery_address=delivery_address,
                delivery_coordinates=delivery_coordinates,
                customer_name=body.get('customerName'),
                customer_phone=body.get('customerPhone'),
                order_value=order_value,
            )

            metrics.add_metric(name="DeliveryFeeCalculated", unit="Count", value=1)
            return {"success": True, "data": result.to_dict(), "error": result.error}, 200
        except PricingError as e:
            status = status_for(e.error_type)
            logger.warning(f"Delivery fee rejected ({status}): {e.message}")
            metrics.add_metric(name="DeliveryFeeFailed", unit="Count", value=1)
            return {"success": False, "data": None, **e.to_dict()}, status
        except Exception as e:
            logger.error(f"Error calculating delivery fee: {str(e)}", exc_info=True)
            return {"success": False, "data": None, "error": "Failed to calculate delivery fee",
                    "errorType": type(e).__name__}, 500
