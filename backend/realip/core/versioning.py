API_PREFIX = "/api"
API_V1_PREFIX = f"{API_PREFIX}/v1"
