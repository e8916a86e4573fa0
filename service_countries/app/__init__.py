"""
Countries gateway service package.

The gateway fronts the public REST Countries API, enforcing:
- Rate limiting: fixed window per client IP
- Authentication: static bearer token on the detail route
- Caching: in-process TTL cache with write-through
- Resilient upstream fetching with a full-text fallback

Structure:
- app.main: FastAPI app, routes and service wiring.
- app.adapters: HTTP client for the upstream provider.
- app.caching: Response cache store and key construction.
- app.ratelimit: Fixed window rate limiter.
- app.domain: Request pipeline, shaping, auth guard, error classification.
"""
