"""Exception hierarchy for the event-mixing engine.

Only configuration problems are errors. Candidates or pairs failing a cut are
dropped silently and show up in the QA channels instead.
"""

from __future__ import annotations


class MixingError(Exception):
    """Base class for all errors raised by `resomix`."""


class ConfigurationError(MixingError, ValueError):
    """Raised when a mixing configuration cannot be used.

    Examples:
    - a species PDG code left at zero
    - a PDG code outside the supported pion/kaon/proton/deuteron set
    - inverted sigma windows or non-positive bin widths
    """
