"""Git-hosting credential resolution.

Import from submodules:
- abc: CredentialResolver, CredentialsNotFoundError
- real: EnvCredentialResolver, GhCliCredentialResolver, ChainCredentialResolver
- fake: FakeCredentialResolver
"""
