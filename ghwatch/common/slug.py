"""Repository slug helpers.

Slugs are ``owner/name`` identifiers as they appear in event envelopes
(``repo.name``) and in ``--repo`` arguments. They are not paths, so they are
split here rather than with ``pathlib``.
"""

from __future__ import annotations


def repo_slug(owner: str, name: str) -> str:
    """Join an owner and repository name into a slug.

    Examples
    --------
    >>> repo_slug("octo", "reef")
    'octo/reef'

    """
    return f"{owner}/{name}"


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Split an ``owner/name`` slug.

    Surrounding whitespace is ignored.

    Raises
    ------
    ValueError
        If the slug does not have exactly one ``/`` with text on both sides.

    Examples
    --------
    >>> parse_repo_slug(" octo/reef ")
    ('octo', 'reef')

    """
    text = slug.strip()
    owner, sep, name = text.partition("/")
    if not sep or not owner or not name or "/" in name:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)
    return owner, name
