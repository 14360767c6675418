"""
Client Service Pricing — Main Entry Point

Run as an API server:
    python -m service_pricing --serve
    # or: uvicorn service_pricing.api:app --reload --port 8000

Price a quote from a JSON request file against a JSON catalog file:
    python -m service_pricing catalog.json request.json
"""

from __future__ import annotations

import json
import logging
import sys

from service_pricing.config import get_settings
from service_pricing.models.schemas import PricingCatalog, QuoteRequest
from service_pricing.pricing.quote_calculator import QuoteCalculator
from service_pricing.utils.logger import setup_logging


def run(catalog_path: str, request_path: str) -> dict:
    """Price a quote offline and return it in wire shape."""
    setup_logging(get_settings().log_level)
    logger = logging.getLogger(__name__)

    with open(catalog_path, encoding="utf-8") as f:
        catalog = PricingCatalog.model_validate(json.load(f))
    with open(request_path, encoding="utf-8") as f:
        request = QuoteRequest.model_validate(json.load(f))

    quote = QuoteCalculator().quote(catalog, request.services, request.apartment_type)
    result = quote.model_dump(mode="json", by_alias=True)

    logger.info(f"Catalog {catalog.id} ({catalog.company.name}), {len(quote.calculations)} lines")
    for line in result["calculations"]:
        if "error" in line:
            logger.info(f"  {line['serviceId']}: {line['error']}")
        else:
            logger.info(
                f"  {line['serviceId']}: {line['quantity']} × {line['basePrice']:,.2f} "
                f"= {line['subtotal']:,.2f} → {line['total']:,.2f}"
            )
    logger.info(f"  Total: {result['totalAmount']:,.2f}")
    return result


def serve(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the FastAPI server."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run("service_pricing.api:app", host=host, port=port, reload=settings.debug)


def main(argv: list[str]) -> None:
    if "--serve" in argv:
        serve()
    elif len(argv) == 2:
        print(json.dumps(run(argv[0], argv[1]), indent=2))
    else:
        print(__doc__)
        sys.exit(2)


if __name__ == "__main__":
    main(sys.argv[1:])
