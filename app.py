"""
AWS Lambda handler for the order pricing API
Uses AWS Lambda Power Tools for API Gateway integration
"""

from aws_lambda_powertools import Logger, Tracer, Metrics
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, CORSConfig
from aws_lambda_powertools.utilities.typing import LambdaContext
from aws_lambda_powertools.middleware_factory import lambda_handler_decorator

from routes.order_routes import register_order_routes
from routes.delivery_routes import register_delivery_routes

SERVICE_NAME = "order-pricing-api"
VERSION = "1.0.0"

# Initialize AWS Lambda Power Tools
logger = Logger(service=SERVICE_NAME)
tracer = Tracer(service=SERVICE_NAME)
metrics = Metrics(namespace="OrderPricing", service="api")

# Create API Gateway resolver with CORS enabled
app = APIGatewayRestResolver(
    cors=CORSConfig(
        allow_origin="*",
        extra_origins=["http://localhost:3000"],
        max_age=300,
        expose_headers=["Content-Type"],
        allow_headers=["Content-Type", "Authorization", "X-Api-Key"]
    )
)

# Register all routes
register_order_routes(app)
register_delivery_routes(app)


@app.get("/health")
@tracer.capture_method
def get_health():
    """Health check endpoint"""
    logger.info("Health check requested")
    metrics.add_metric(name="HealthCheck", unit="Count", value=1)
    return {"status": "healthy", "service": SERVICE_NAME}


@app.get("/api/v1/status")
@tracer.capture_method
def get_status():
    """Get service status"""
    logger.info("Status check requested")
    return {
        "status": "operational",
        "version": VERSION,
        "service": SERVICE_NAME
    }


@lambda_handler_decorator
def middleware_handler(handler, event, context):
    """Middleware for logging and error handling"""
    logger.info("Lambda invocation started")

    try:
        response = handler(event, context)
        logger.info("Lambda invocation completed successfully")
        return response
    except Exception:
        logger.error("Lambda invocation failed", exc_info=True)
        raise


@middleware_handler
@logger.inject_lambda_context(log_event=False)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """
    Main Lambda handler function
    """
    return app.resolve(event, context)
