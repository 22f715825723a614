"""
connectors — OAuth integration with the Notion workspace API.

Provides:
  • OAuth2 auth-URL generation (state carries the caller's user_id)
  • Callback handling (code → token exchange)
  • Per-user token storage behind the ``CredentialStore`` seam
  • Fernet encryption of tokens at rest

The ``CredentialManager`` ties a connector to a store.
"""
