"""PersonDirectory — resolves pusher / committer identities to people.

A directory instance is handed to the TreeReconstructor explicitly; there
is no process-wide cache.  Identities look like ``"Name <email>"`` or a
bare email address.  Known people are registered up front (by email or
alias); any other identity resolves to a placeholder ``Person`` with
``known=False`` that is cached for the life of the directory.
"""

from __future__ import annotations

import logging
import re

from arbwatch.models.pushes import Person

logger = logging.getLogger(__name__)

_IDENTITY_RE = re.compile(r"^\s*(?P<name>.*?)\s*<(?P<email>[^>]*)>\s*$")

UNKNOWN_NAME = "Unknown"


def parse_identity(identity: str | None) -> tuple[str, str]:
    """Split an identity string into ``(name, email)``.

    >>> parse_identity("Jane Doe <jane@example.com>")
    ('Jane Doe', 'jane@example.com')
    >>> parse_identity("jane@example.com")
    ('jane@example.com', 'jane@example.com')
    """
    if not identity or not identity.strip():
        return UNKNOWN_NAME, ""
    match = _IDENTITY_RE.match(identity)
    if match:
        email = match.group("email").strip()
        name = match.group("name").strip() or email or UNKNOWN_NAME
        return name, email
    identity = identity.strip()
    email = identity if "@" in identity else ""
    return identity, email


class PersonDirectory:
    """Explicit identity lookup with a placeholder miss policy.

    Parameters
    ----------
    people:
        Known people.  Each is indexed by its email (lower-cased) and name.
    aliases:
        Extra identity strings (emails or names) mapped to a known email.
    """

    def __init__(
        self,
        people: list[Person] | None = None,
        aliases: dict[str, str] | None = None,
    ) -> None:
        self._known: dict[str, Person] = {}
        self._placeholders: dict[str, Person] = {}
        for person in people or []:
            self.register(person)
        for alias, email in (aliases or {}).items():
            person = self._known.get(email.lower())
            if person is None:
                raise KeyError(f"Alias {alias!r} points at unknown email {email!r}")
            self._known[alias.lower()] = person

    def register(self, person: Person) -> Person:
        """Add a known person; returns the stored (``known=True``) record."""
        stored = person if person.known else person.model_copy(update={"known": True})
        if stored.email:
            self._known[stored.email.lower()] = stored
        self._known[stored.name.lower()] = stored
        return stored

    def lookup(self, identity: str | None) -> Person:
        """Resolve *identity*; never fails, misses yield a placeholder."""
        name, email = parse_identity(identity)
        for probe in (email, name):
            if probe and probe.lower() in self._known:
                return self._known[probe.lower()]

        cache_key = (identity or "").strip().lower()
        person = self._placeholders.get(cache_key)
        if person is None:
            person = Person(name=name, email=email, known=False)
            self._placeholders[cache_key] = person
            logger.debug("PersonDirectory: placeholder for %r", identity)
        return person

    def get_person_for_pusher(self, identity: str | None) -> Person:
        return self.lookup(identity)

    def get_person_for_committer(self, identity: str | None) -> Person:
        return self.lookup(identity)

    @property
    def placeholder_count(self) -> int:
        """Number of distinct unknown identities seen so far."""
        return len(self._placeholders)
