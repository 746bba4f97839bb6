"""
API routes.

- data: snapshot read endpoint (/data, /api/get-data)
- update: authenticated snapshot rebuild (/api/update-data)
- nhl_proxy: NHL web API pass-through (/api/nhl)
"""
