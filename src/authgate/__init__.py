"""AuthGate — authentication gateway.

Issues and verifies bearer credentials for client applications and keeps
a minimal user profile per verified identity: self-issued JWTs backed by
bcrypt passwords, or ID tokens from an external identity provider.
"""

__version__ = "0.1.0"
