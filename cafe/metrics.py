from prometheus_client import Counter, Gauge, Histogram

REMOTE_REQUESTS = Counter(
    "cafe_remote_requests_total",
    "Requests issued to the remote document store",
    ["method", "resource", "outcome"],  # outcome: ok | empty | unavailable
)

REMOTE_LATENCY = Histogram(
    "cafe_remote_request_duration_seconds",
    "Remote document store request latency",
    ["method", "resource"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

DB_STATUS = Gauge(
    "cafe_db_status",
    "Remote reachability (0=disconnected, 1=connected, 2=permission_denied)",
)

NETWORK_ONLINE = Gauge(
    "cafe_network_online",
    "Platform network presence (1=online, 0=offline)",
)

OFFLINE_QUEUE_DEPTH = Gauge(
    "cafe_offline_queue_depth",
    "Orders waiting in the offline queue",
)

QUEUE_DRAINS = Counter(
    "cafe_offline_queue_drains_total",
    "Offline queue drain attempts by outcome",
    ["outcome"],  # probe_failed | drained | partial
)

SYNC_CYCLES = Counter(
    "cafe_sync_cycles_total",
    "Bootstrap and poll cycles by outcome",
    ["kind", "outcome"],  # kind: bootstrap | poll
)

LOCAL_CACHE_FALLBACKS = Counter(
    "cafe_local_cache_fallbacks_total",
    "Local cache entries that were missing or corrupt and fell back to defaults",
    ["key"],
)
