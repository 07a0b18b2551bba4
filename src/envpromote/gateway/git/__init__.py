"""Git working-copy gateway.

Import from submodules:
- abc: GitWorkingCopy
- real: RealGitWorkingCopy
- fake: FakeGitWorkingCopy
"""
