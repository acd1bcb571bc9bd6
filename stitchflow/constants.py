"""Shared constants for stitchflow."""

STEP_ID_PREFIX = "step"
ORDER_CODE_PREFIX = "ORD"
DEFAULT_MAX_RETRIES = 3
EVENT_QUEUE_PREFIX = "stitchflow"
ORDER_TOPIC_PREFIX = "order"
DEFAULT_MAX_EVENTS = 1000
