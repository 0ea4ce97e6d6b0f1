"""Order domain constants."""

ORDER_NUMBER_PREFIX = "ORD"

ORDER_NUMBER_MAX_RETRIES = 5
