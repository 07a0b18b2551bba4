"""Promotion pull-request engine.

Import from submodules:
- types: PromotionRequest, PromotionResult, PromotionOutcome
- errors: PublishError, NoChangesError, ManifestNotFoundError, GitOperationError
- publisher: BranchPublisher
- poller: PromotionPoller, PollSession
- engine: PromotionEngine
"""
