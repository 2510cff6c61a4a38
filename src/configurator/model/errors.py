"""
Exception Hierarchy
===================
Errors raised by the configurator model. Resolvers never raise for missing
pricing rules or hidden meshes; these are reserved for invalid edits and
malformed configuration objects.
"""


class ConfiguratorError(Exception):
    """Base class for all configurator errors."""


class ConfigurationError(ConfiguratorError):
    """The configuration object is malformed."""


class SelectionError(ConfiguratorError, ValueError):
    """A selection refers to a value that is not an option of its group."""


class PricingRuleError(ConfiguratorError, ValueError):
    """A pricing rule write violates the lower-triangular matrix constraint."""


class UnknownChapterError(ConfiguratorError, KeyError):
    pass


class UnknownGroupError(ConfiguratorError, KeyError):
    pass


class UnknownOptionError(ConfiguratorError, KeyError):
    pass
