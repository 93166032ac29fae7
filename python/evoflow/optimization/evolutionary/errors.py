###############################################################################
# Copyright (C) 2023 Oliver Michael Kamperis
# Email: olliekampo@gmail.com
#
# This program is free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License as published by the Free Software
# Foundation, either version 3 of the License, or any later version.
#
# This program is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS
# FOR A PARTICULAR PURPOSE. See the GNU General Public License for details.
#
# You should have received a copy of the GNU General Public License along with
# this program. If not, see <https://www.gnu.org/licenses/>.

"""Module for all evolutionary engine related errors."""

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "1.0.0"

__all__ = (
    "EvoflowError",
    "ConfigurationError",
    "MissingInitialPopulationError",
    "OperatorSelectionPolicyConflictError",
    "InvalidOperationError",
    "InvalidChromosomeError"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class EvoflowError(Exception):
    """Base class for all errors raised by the evolutionary engine."""
    pass


class ConfigurationError(EvoflowError, ValueError):
    """
    Raised when a strategy, policy or runner is given an invalid parameter.

    Always raised before the first epoch of a run.
    """
    pass


class MissingInitialPopulationError(ConfigurationError):
    """Raised when a runner is created without an initial population."""
    pass


class OperatorSelectionPolicyConflictError(ConfigurationError):
    """
    Raised when operators are registered with custom weights but a policy
    other than the custom weight policy is requested explicitly.
    """
    pass


class InvalidOperationError(EvoflowError, RuntimeError):
    """Raised when an operation is attempted in a state that forbids it."""
    pass


class InvalidChromosomeError(EvoflowError, ValueError):
    """Raised when a chromosome cannot take part in a genetic operation."""
    pass
