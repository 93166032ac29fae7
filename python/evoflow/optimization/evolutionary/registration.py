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

"""
Module defining operator registrations.

A registration collects the operators configured for one phase of a run and
decides the policy that arbitrates between them. If no policy is requested:
    - operators with custom weights use the custom weight policy,
    - several operators without weights use the adaptive pursuit policy,
    - a single operator uses the first choice policy.
"""

from typing import Generic, TypeVar

from evoflow.optimization.evolutionary.crossover import CrossoverStrategy
from evoflow.optimization.evolutionary.errors import (
    ConfigurationError, InvalidOperationError,
    OperatorSelectionPolicyConflictError)
from evoflow.optimization.evolutionary.operators import GeneticOperator
from evoflow.optimization.evolutionary.parentselection import ParentSelector
from evoflow.optimization.evolutionary.policies import (AdaptivePursuitPolicy,
                                                        CustomWeightPolicy,
                                                        FirstChoicePolicy,
                                                        OperatorSelectionPolicy,
                                                        PolicyType, get_policy)
from evoflow.optimization.evolutionary.survivorselection import \
    SurvivorSelector

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "OperatorRegistration",
    "ParentSelectionRegistration",
    "CrossoverRegistration",
    "SurvivorSelectionRegistration"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


# Generic operator type.
OT = TypeVar("OT", bound=GeneticOperator)


class OperatorRegistration(Generic[OT]):
    """The operators registered for one phase of a run, and their policy."""

    __slots__ = {
        "__phase": "The name of the phase, used in error messages.",
        "__operators": "The registered operators.",
        "__requested_policy": "The policy requested by the user, if any.",
        "__policy": "The policy resolved for the registered operators."
    }

    def __init__(self, phase: str) -> None:
        """
        Create a new empty registration.

        Parameters
        ----------
        `phase: str` - The name of the phase, used in error messages.
        """
        self.__phase: str = phase
        self.__operators: list[OT] = []
        self.__requested_policy: OperatorSelectionPolicy[OT] | None = None
        self.__policy: OperatorSelectionPolicy[OT] | None = None

    def __repr__(self) -> str:
        """Return a string representation of the registration."""
        return (f"{self.__class__.__name__}(phase={self.__phase!r}, "
                f"operators={self.__operators!r})")

    @property
    def phase(self) -> str:
        """The name of the phase."""
        return self.__phase

    @property
    def operators(self) -> tuple[OT, ...]:
        """The registered operators, in registration order."""
        return tuple(self.__operators)

    @property
    def is_empty(self) -> bool:
        """Whether no operators are registered."""
        return not self.__operators

    @property
    def has_custom_weights(self) -> bool:
        """Whether any registered operator has a custom weight."""
        return any(operator.custom_weight > 0.0 for operator in self.__operators)

    @property
    def policy(self) -> OperatorSelectionPolicy[OT]:
        """
        The resolved policy.

        Raises
        ------
        `InvalidOperationError` - If the policy has not been resolved.
        """
        if self.__policy is None:
            raise InvalidOperationError(
                f"The {self.__phase} policy has not been resolved.")
        return self.__policy

    def register(
        self,
        operator: OT,
        custom_weight: float | None = None
    ) -> "OperatorRegistration[OT]":
        """
        Register an operator and return the registration.

        Parameters
        ----------
        `operator: OT` - The operator to register.

        `custom_weight: float | None = None` - The custom weight of the
        operator, None leaves the operator's weight unchanged.

        Raises
        ------
        `ConfigurationError` - If the operator is already registered, or the
        custom weight is negative.
        """
        if any(registered is operator for registered in self.__operators):
            raise ConfigurationError(
                f"Operator {operator!r} is already registered for "
                f"{self.__phase}.")
        if custom_weight is not None:
            operator.custom_weight = custom_weight
        self.__operators.append(operator)
        self.__policy = None
        return self

    def with_policy(
        self,
        policy: OperatorSelectionPolicy[OT] | PolicyType
    ) -> "OperatorRegistration[OT]":
        """
        Request a policy and return the registration.

        The policy may be given as an instance, or by name.
        """
        if isinstance(policy, str):
            policy = get_policy(policy)
        self.__requested_policy = policy
        self.__policy = None
        return self

    def resolve_policy(self) -> OperatorSelectionPolicy[OT]:
        """
        Choose the policy for the registered operators and apply them to it.

        Raises
        ------
        `ConfigurationError` - If no operators are registered.

        `OperatorSelectionPolicyConflictError` - If operators have custom
        weights and a policy other than the custom weight policy was
        requested.
        """
        if not self.__operators:
            raise ConfigurationError(
                f"No operators are registered for {self.__phase}.")
        requested = self.__requested_policy
        policy: OperatorSelectionPolicy[OT]
        if self.has_custom_weights:
            if (requested is not None
                    and not isinstance(requested, CustomWeightPolicy)):
                raise OperatorSelectionPolicyConflictError(
                    f"Operators registered for {self.__phase} have custom "
                    "weights, which require the custom weight policy. "
                    f"Got; {requested!r}.")
            policy = CustomWeightPolicy() if requested is None else requested
        elif requested is not None:
            policy = requested
        elif len(self.__operators) > 1:
            policy = AdaptivePursuitPolicy()
        else:
            policy = FirstChoicePolicy()
        policy.apply_operators(self.__operators)
        self.__policy = policy
        return policy


class ParentSelectionRegistration(OperatorRegistration[ParentSelector]):
    """The parent selection operators of a run."""

    __slots__ = ()

    def __init__(self) -> None:
        """Create a new empty parent selection registration."""
        super().__init__("parent selection")


class CrossoverRegistration(OperatorRegistration[CrossoverStrategy]):
    """The crossover operators of a run, and the crossover rate."""

    __slots__ = ("__crossover_rate",)

    def __init__(self, crossover_rate: float = 0.9) -> None:
        """
        Create a new empty crossover registration.

        Parameters
        ----------
        `crossover_rate: float = 0.9` - The probability that a selected
        couple produces offspring, in `[0, 1]`.
        """
        super().__init__("crossover")
        self.__crossover_rate: float = 0.9
        self.crossover_rate = crossover_rate

    @property
    def crossover_rate(self) -> float:
        """The probability that a selected couple produces offspring."""
        return self.__crossover_rate

    @crossover_rate.setter
    def crossover_rate(self, rate: float) -> None:
        """Set the crossover rate, must be in `[0, 1]`."""
        if not 0.0 <= rate <= 1.0:
            raise ConfigurationError(
                f"Crossover rate must be in [0.0, 1.0]. Got; {rate}.")
        self.__crossover_rate = rate

    def with_crossover_rate(self, rate: float) -> "CrossoverRegistration":
        """Set the crossover rate and return the registration."""
        self.crossover_rate = rate
        return self


class SurvivorSelectionRegistration(OperatorRegistration[SurvivorSelector]):
    """
    The survivor selection operators of a run.

    The number of offspring generated each epoch follows the recommended
    rate of the selected operator, unless a rate is set here.
    """

    __slots__ = ("__offspring_generation_rate",)

    def __init__(self) -> None:
        """Create a new empty survivor selection registration."""
        super().__init__("survivor selection")
        self.__offspring_generation_rate: float | None = None

    @property
    def offspring_generation_rate(self) -> float | None:
        """The offspring generation rate override, None if not set."""
        return self.__offspring_generation_rate

    @offspring_generation_rate.setter
    def offspring_generation_rate(self, rate: float | None) -> None:
        """Set the offspring generation rate, must be in `(0, 1]` or None."""
        if rate is not None and not 0.0 < rate <= 1.0:
            raise ConfigurationError(
                f"Offspring generation rate must be in (0.0, 1.0]. Got; {rate}.")
        self.__offspring_generation_rate = rate

    def with_offspring_generation_rate(
        self,
        rate: float | None
    ) -> "SurvivorSelectionRegistration":
        """Set the offspring generation rate and return the registration."""
        self.offspring_generation_rate = rate
        return self

    def offspring_generation_rate_for(self, selector: SurvivorSelector) -> float:
        """The offspring generation rate to use with the given selector."""
        if self.__offspring_generation_rate is not None:
            return self.__offspring_generation_rate
        return selector.recommended_offspring_generation_rate
