"""Git-hosting capability gateway.

The promotion engine is written only against the GitProvider interface; one
adapter per backend kind implements it over that backend's REST API.

Import from submodules:
- abc: GitProvider
- types: PullRequestHandle, CIStatus, HostKind, RepositoryRef
- errors: ProviderError, ProviderTransientError, ProviderFatalError
- factory: create_git_provider, detect_host_kind
- github / gitlab / gitea / bitbucket: REST adapters
- fake: FakeGitProvider
"""
