"""Authentication and authorization.

Three layers, each usable on its own:
1. tokens — TokenCodec signs/verifies access and refresh JWTs (pure, no I/O)
2. dependencies — the request gate: header → token → CurrentIdentity
3. policy — admin / active / admin-or-same-user checks against the stored user

Routes compose them as an ordered Depends() list; the first failure wins.
"""
