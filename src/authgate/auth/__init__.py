"""Credential handling.

Learn: Two interchangeable ways to prove identity, selected at startup:
1. Self-issued → email/password → JWT signed with our shared secret
2. Provider → ID token minted by an external identity provider

Both verify to the same IdentityClaim, which the reconciler turns into
exactly one user profile.
"""
