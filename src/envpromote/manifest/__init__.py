"""Dependency manifest editing.

Import from submodules:
- types: ManifestMutation, MutationOperation
- mutator: apply_mutation, read_dependencies, MalformedManifestError
"""
