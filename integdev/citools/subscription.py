"""Matching package subscription requirements against a stack subscription."""

from __future__ import annotations

from integdev.citools.manifest import read_package_manifest


def package_subscription(path) -> str:
    """The subscription a package needs, falling back to its licence, then ``basic``."""
    manifest = read_package_manifest(path)
    return manifest.elastic_subscription or manifest.license or "basic"


def is_subscription_compatible(stack_subscription: str, path) -> bool:
    """Whether a stack with ``stack_subscription`` can run the package at ``path``."""
    required = package_subscription(path)
    if stack_subscription == "trial":
        return True
    if stack_subscription == "basic":
        return required == "basic"
    raise ValueError(f"unknown subscription {stack_subscription}")