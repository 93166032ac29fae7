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
Module defining operator selection policies.

When several genetic operators are registered for the same phase of a run,
an operator selection policy chooses which one to use each epoch. Policies
range from the trivial (always the first, cycle in order) to the adaptive
(adaptive pursuit, which learns which operator improves fitness the most).
"""

import logging
from abc import ABCMeta, abstractmethod
from typing import Any, Generic, Iterable, Literal, TypeAlias, TypeVar

import numpy as np
from numpy.random import Generator
from typing_extensions import override

from evoflow.datahandling.runningstats import RecencyWeightedAverage
from evoflow.moremath.mathutils import normalize_to_sum
from evoflow.optimization.evolutionary.errors import (
    ConfigurationError, InvalidOperationError)
from evoflow.optimization.evolutionary.operators import GeneticOperator
from evoflow.optimization.evolutionary.roulettewheel import \
    WeightedRouletteWheel

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "PolicyType",
    "OperatorSelectionPolicy",
    "RoundRobinPolicy",
    "RandomChoicePolicy",
    "CustomWeightPolicy",
    "FirstChoicePolicy",
    "AdaptivePursuitPolicy",
    "get_policy"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


PolicyType: TypeAlias = Literal[
    "round-robin",
    "random",
    "custom-weight",
    "first-choice",
    "adaptive-pursuit"
]

# Generic operator type.
OT = TypeVar("OT", bound=GeneticOperator)


class OperatorSelectionPolicy(Generic[OT], metaclass=ABCMeta):
    """
    Base class for operator selection policies.

    Operators must be applied to the policy with `apply_operators` before
    any can be selected with `select_operator`.
    """

    __slots__ = ("__operators",)

    def __init__(self) -> None:
        """Super constructor for operator selection policies."""
        self.__operators: tuple[OT, ...] | None = None

    def __repr__(self) -> str:
        """Return a string representation of the policy."""
        return f"{self.__class__.__name__}()"

    @property
    def operators(self) -> tuple[OT, ...]:
        """The operators applied to the policy, empty if none were applied."""
        if self.__operators is None:
            return ()
        return self.__operators

    @property
    def is_applied(self) -> bool:
        """Whether operators have been applied to the policy."""
        return self.__operators is not None

    def apply_operators(self, operators: Iterable[OT] | None) -> None:
        """
        Apply the operators the policy chooses between.

        Re-applying operators resets any state the policy holds.

        Raises
        ------
        `ConfigurationError` - If the operators are None or empty, or the
        policy cannot choose between the given number of operators.
        """
        if operators is None:
            raise ConfigurationError(
                f"{self.__class__.__name__} requires operators. Got; None.")
        operators_ = tuple(operators)
        if not operators_:
            raise ConfigurationError(
                f"{self.__class__.__name__} requires at least one operator. "
                "Got; an empty collection.")
        self._validate_operators(operators_)
        self.__operators = operators_
        self._reset(operators_)

    def select_operator(self, generator: Generator, epoch: int = 0) -> OT:
        """
        Select an operator.

        Parameters
        ----------
        `generator: Generator` - The random number generator of the run.

        `epoch: int = 0` - The current epoch of the run.

        Raises
        ------
        `InvalidOperationError` - If no operators have been applied, or no
        generator is given.
        """
        if self.__operators is None:
            raise InvalidOperationError(
                f"{self.__class__.__name__} cannot select an operator "
                "before operators have been applied.")
        if generator is None:
            raise InvalidOperationError(
                f"{self.__class__.__name__} requires a random number "
                "generator to select an operator. Got; None.")
        return self._select(self.__operators, generator, epoch)

    def _validate_operators(self, operators: tuple[OT, ...]) -> None:
        """Check the policy can choose between the given operators."""
        pass

    def _reset(self, operators: tuple[OT, ...]) -> None:
        """Reset the state of the policy for newly applied operators."""
        pass

    @abstractmethod
    def _select(
        self,
        operators: tuple[OT, ...],
        generator: Generator,
        epoch: int
    ) -> OT:
        """Select one of the given (non-empty) operators."""
        ...


class RoundRobinPolicy(OperatorSelectionPolicy[OT]):
    """
    Selects operators in turn, in the order they were applied.

    The random number generator is ignored, re-applying operators resets
    the policy to the first operator.
    """

    __slots__ = ("__cursor",)

    def __init__(self) -> None:
        """Create a new round robin policy."""
        super().__init__()
        self.__cursor: int = 0

    @override
    def _reset(self, operators: tuple[OT, ...]) -> None:
        self.__cursor = 0

    @override
    def _select(
        self,
        operators: tuple[OT, ...],
        generator: Generator,
        epoch: int
    ) -> OT:
        operator: OT = operators[self.__cursor]
        self.__cursor = (self.__cursor + 1) % len(operators)
        return operator


class RandomChoicePolicy(OperatorSelectionPolicy[OT]):
    """Selects operators uniformly at random."""

    __slots__ = ()

    @override
    def _select(
        self,
        operators: tuple[OT, ...],
        generator: Generator,
        epoch: int
    ) -> OT:
        return WeightedRouletteWheel.uniform(operators).spin(generator)


class CustomWeightPolicy(OperatorSelectionPolicy[OT]):
    """
    Selects operators randomly with probability proportional to their
    custom weights.

    The weights are read at every selection, so changing an operator's
    weight takes effect immediately. If every weight is zero, operators are
    selected uniformly.
    """

    __slots__ = ()

    @override
    def _select(
        self,
        operators: tuple[OT, ...],
        generator: Generator,
        epoch: int
    ) -> OT:
        weights: list[float] = normalize_to_sum(
            [operator.custom_weight for operator in operators], 1.0)
        return WeightedRouletteWheel(operators, weights).spin(generator)


class FirstChoicePolicy(OperatorSelectionPolicy[OT]):
    """Always selects the single applied operator."""

    __slots__ = ()

    @override
    def _validate_operators(self, operators: tuple[OT, ...]) -> None:
        if len(operators) > 1:
            raise ConfigurationError(
                "The first choice policy accepts exactly one operator. "
                f"Got; {len(operators)} operators.")

    @override
    def _select(
        self,
        operators: tuple[OT, ...],
        generator: Generator,
        epoch: int
    ) -> OT:
        return operators[0]


class AdaptivePursuitPolicy(OperatorSelectionPolicy[OT]):
    """
    Adaptive pursuit operator selection.

    Each operator has a selection probability, initially uniform. After an
    operator is used, the caller rewards it with the fitness change it
    produced. The probability of the operator with the highest recent reward
    is then moved towards a ceiling `p_max`, and the probabilities of all
    other operators are moved towards a floor `p_min`, where
    `p_max = 1 - (n - 1) * p_min`. The probabilities always sum to one and
    never leave `[p_min, p_max]`, so no operator is ever starved.

    During the first `warmup_runs` epochs operators are selected in turn,
    so each gathers some reward before the probabilities take over.
    Probabilities are only adapted once every operator has been used at
    least `minimum_usage_before_adaptation` times.
    """

    __POLICY_LOGGER = logging.getLogger("AdaptivePursuitPolicy")

    __slots__ = {
        "__learning_rate": "The fraction of the way probabilities move per update.",
        "__minimum_probability": "The probability floor of every operator.",
        "__reward_window_size": "The number of recent rewards remembered.",
        "__diversity_weight": "The weight of the diversity signal in rewards.",
        "__minimum_usage": "The usage every operator needs before adaptation.",
        "__warmup_runs": "The number of epochs of round robin selection.",
        "__probabilities": "The selection probability of each operator.",
        "__rewards": "The windowed rewards of each operator.",
        "__usage": "The number of times each operator has been selected.",
        "__cursor": "The round robin cursor used during warm-up."
    }

    def __init__(
        self,
        learning_rate: float = 0.1,
        minimum_probability: float = 0.05,
        reward_window_size: int = 10,
        diversity_weight: float = 0.1,
        minimum_usage_before_adaptation: int = 5,
        warmup_runs: int = 10
    ) -> None:
        """
        Create a new adaptive pursuit policy.

        Parameters
        ----------
        `learning_rate: float = 0.1` - The fraction of the distance to their
        targets that probabilities move on each update, in `(0, 1]`.

        `minimum_probability: float = 0.05` - The probability floor of every
        operator, in `[0, 1)`.

        `reward_window_size: int = 10` - The number of recent rewards each
        operator remembers. Recent rewards weigh more than old ones.

        `diversity_weight: float = 0.1` - The weight of the diversity signal
        added to fitness improvement when computing rewards.

        `minimum_usage_before_adaptation: int = 5` - The number of times
        every operator must be selected before probabilities adapt.

        `warmup_runs: int = 10` - The number of epochs during which operators
        are selected in turn instead of by probability.

        Raises
        ------
        `ConfigurationError` - If any parameter is out of range.
        """
        super().__init__()
        if not 0.0 < learning_rate <= 1.0:
            raise ConfigurationError(
                f"Learning rate must be in (0.0, 1.0]. Got; {learning_rate}.")
        if not 0.0 <= minimum_probability < 1.0:
            raise ConfigurationError(
                "Minimum probability must be in [0.0, 1.0). "
                f"Got; {minimum_probability}.")
        if reward_window_size < 1:
            raise ConfigurationError(
                "Reward window size must be at least 1. "
                f"Got; {reward_window_size}.")
        if diversity_weight < 0.0:
            raise ConfigurationError(
                "Diversity weight must be non-negative. "
                f"Got; {diversity_weight}.")
        if minimum_usage_before_adaptation < 0:
            raise ConfigurationError(
                "Minimum usage before adaptation must be non-negative. "
                f"Got; {minimum_usage_before_adaptation}.")
        if warmup_runs < 0:
            raise ConfigurationError(
                f"Warm-up runs must be non-negative. Got; {warmup_runs}.")
        self.__learning_rate: float = learning_rate
        self.__minimum_probability: float = minimum_probability
        self.__reward_window_size: int = reward_window_size
        self.__diversity_weight: float = diversity_weight
        self.__minimum_usage: int = minimum_usage_before_adaptation
        self.__warmup_runs: int = warmup_runs
        self.__probabilities: np.ndarray = np.empty(0)
        self.__rewards: list[RecencyWeightedAverage] = []
        self.__usage: list[int] = []
        self.__cursor: int = 0

    def __repr__(self) -> str:
        """Return an instantiable string representation of the policy."""
        return (f"{self.__class__.__name__}("
                f"{self.__learning_rate}, {self.__minimum_probability}, "
                f"{self.__reward_window_size}, {self.__diversity_weight}, "
                f"{self.__minimum_usage}, {self.__warmup_runs})")

    @property
    def learning_rate(self) -> float:
        """The fraction of the way probabilities move per update."""
        return self.__learning_rate

    @property
    def minimum_probability(self) -> float:
        """The probability floor of every operator."""
        return self.__minimum_probability

    @property
    def maximum_probability(self) -> float:
        """The probability ceiling of the currently best operator."""
        operators = len(self.operators)
        if operators == 0:
            return 1.0
        return 1.0 - ((operators - 1) * self.__minimum_probability)

    @property
    def probabilities(self) -> tuple[float, ...]:
        """The selection probability of each operator, in applied order."""
        return tuple(self.__probabilities.tolist())

    @property
    def usage_counts(self) -> tuple[int, ...]:
        """The number of times each operator has been selected."""
        return tuple(self.__usage)

    def probability_of(self, operator: OT) -> float:
        """Get the selection probability of the given operator."""
        return float(self.__probabilities[self.__index_of(operator)])

    def reward_of(self, operator: OT) -> float:
        """Get the recency weighted reward of the given operator."""
        return self.__rewards[self.__index_of(operator)].average

    def __index_of(self, operator: OT) -> int:
        """Get the index of an applied operator by identity."""
        for index, applied in enumerate(self.operators):
            if applied is operator:
                return index
        raise ConfigurationError(
            f"Operator {operator!r} is not applied to this policy.")

    @override
    def _validate_operators(self, operators: tuple[OT, ...]) -> None:
        if len(operators) * self.__minimum_probability > 1.0:
            raise ConfigurationError(
                "The minimum probability is too large for the number of "
                f"operators. Got; {self.__minimum_probability} * "
                f"{len(operators)} > 1.0.")

    @override
    def _reset(self, operators: tuple[OT, ...]) -> None:
        total: int = len(operators)
        self.__probabilities = np.full(total, 1.0 / total)
        self.__rewards = [
            RecencyWeightedAverage(self.__reward_window_size)
            for _ in range(total)
        ]
        self.__usage = [0] * total
        self.__cursor = 0

    @override
    def _select(
        self,
        operators: tuple[OT, ...],
        generator: Generator,
        epoch: int
    ) -> OT:
        index: int
        if epoch < self.__warmup_runs:
            index = self.__cursor
            self.__cursor = (self.__cursor + 1) % len(operators)
        else:
            index = WeightedRouletteWheel(
                range(len(operators)),
                self.__probabilities
            ).spin(generator)
        self.__usage[index] += 1
        return operators[index]

    def update_reward(
        self,
        operator: OT,
        pre_fitness: float,
        post_fitness: float,
        normalization_range: float = 1.0,
        diversity_signal: float = 0.0
    ) -> float:
        """
        Reward an operator with the fitness change it produced.

        Parameters
        ----------
        `operator: OT` - The operator that was used.

        `pre_fitness: float` - The fitness before the operator was used.

        `post_fitness: float` - The fitness after the operator was used.

        `normalization_range: float = 1.0` - The range used to normalise the
        fitness change, typically the fitness range of the population. The
        fitness change is used unnormalised if the range is not positive.

        `diversity_signal: float = 0.0` - A measure of the diversity the
        operator produced, scaled by the diversity weight.

        Returns
        -------
        `float` - The reward given to the operator.

        Raises
        ------
        `InvalidOperationError` - If no operators have been applied.

        `ConfigurationError` - If the operator is not applied to the policy.
        """
        if not self.is_applied:
            raise InvalidOperationError(
                "Cannot reward an operator before operators have been applied.")
        index: int = self.__index_of(operator)
        improvement: float = post_fitness - pre_fitness
        if normalization_range > 0.0:
            improvement /= normalization_range
        reward: float = improvement + (self.__diversity_weight * diversity_signal)
        self.__rewards[index].append(reward)
        if all(usage >= self.__minimum_usage for usage in self.__usage):
            self.__adapt()
        return reward

    def __adapt(self) -> None:
        """Pursue the operator with the highest recent reward."""
        total: int = len(self.__probabilities)
        if total < 2:
            return
        best: int = int(np.argmax([reward.average for reward in self.__rewards]))
        targets = np.full(total, self.__minimum_probability)
        targets[best] = self.maximum_probability
        probabilities = self.__probabilities + (
            self.__learning_rate * (targets - self.__probabilities))
        probabilities /= probabilities.sum()
        self.__probabilities = np.clip(
            probabilities,
            self.__minimum_probability,
            self.maximum_probability
        )
        self.__POLICY_LOGGER.debug(
            "Pursuing %s: probabilities=%s",
            self.operators[best].name,
            self.__probabilities.tolist()
        )


def get_policy(
    policy_type: PolicyType,
    **kwargs: Any
) -> OperatorSelectionPolicy[Any]:
    """
    Create an operator selection policy of the given type.

    Parameters
    ----------
    `policy_type: PolicyType` - The type of policy to create:
        - "round-robin" - Round robin policy.
        - "random" - Random choice policy.
        - "custom-weight" - Custom weight policy.
        - "first-choice" - First choice policy.
        - "adaptive-pursuit" - Adaptive pursuit policy.

    `**kwargs: Any` - Parameters passed to the adaptive pursuit policy.

    Raises
    ------
    `ConfigurationError` - If the policy type is not one of the supported
    types, or parameters are given to a policy that takes none.
    """
    if kwargs and policy_type != "adaptive-pursuit":
        raise ConfigurationError(
            f"The {policy_type!r} policy takes no parameters. Got; {kwargs}.")
    match policy_type:
        case "round-robin":
            return RoundRobinPolicy()
        case "random":
            return RandomChoicePolicy()
        case "custom-weight":
            return CustomWeightPolicy()
        case "first-choice":
            return FirstChoicePolicy()
        case "adaptive-pursuit":
            return AdaptivePursuitPolicy(**kwargs)
        case _:
            raise ConfigurationError(
                f"Unknown policy type. Got; {policy_type!r}.")
