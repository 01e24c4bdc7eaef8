"""Authentication and authorization.

Learn: Users log in with email/password and receive a JWT access token.
Every protected request then passes through two gates:
1. Authentication → bearer token → live user record (must be active)
2. Authorization → role check against an allowed set (admin routes)

Tokens are stateless; logout is the client discarding its token.
"""
