"""arbwatch data models — Pydantic v2.

Wire payloads and key variants are frozen; the reconstructed push tree is
mutable because it is linked together after construction.
"""

from arbwatch.models.keys import DecodedKey, KeyKind
from arbwatch.models.logs import LogOverview, ParsedLog
from arbwatch.models.notifications import PushInfoMessage, PushNotification
from arbwatch.models.pushes import Build, BuildPush, Changeset, Person, Push
from arbwatch.models.summaries import BuildSummary, ChangeSummary
from arbwatch.models.trees import RepoDefinition, TreeDefinition, local_tree
from arbwatch.models.wire import (
    BuildPayload,
    BuilderDescriptor,
    BuilderOS,
    BuilderType,
    ChangesetPayload,
    PushPayload,
)

__all__ = [
    # keys
    "KeyKind",
    "DecodedKey",
    # wire
    "PushPayload",
    "ChangesetPayload",
    "BuildPayload",
    "BuilderDescriptor",
    "BuilderOS",
    "BuilderType",
    # push tree
    "Person",
    "Changeset",
    "Push",
    "Build",
    "BuildPush",
    # summaries
    "ChangeSummary",
    "BuildSummary",
    # trees
    "RepoDefinition",
    "TreeDefinition",
    "local_tree",
    # logs
    "LogOverview",
    "ParsedLog",
    # notifications
    "PushNotification",
    "PushInfoMessage",
]
