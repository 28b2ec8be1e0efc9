from .policy_resolver import PolicyResolver, merge_policy

__all__ = [
    "PolicyResolver",
    "merge_policy",
]
