###########################################################################
###########################################################################
## Module defining temperature decay functions for Boltzmann selection. ##
##                                                                       ##
## Copyright (C)  2022  Oliver Michael Kamperis                          ##
## Email: o.m.kamperis@gmail.com                                         ##
##                                                                       ##
## This program is free software: you can redistribute it and/or modify  ##
## it under the terms of the GNU General Public License as published by  ##
## the Free Software Foundation, either version 3 of the License, or     ##
## any later version.                                                    ##
##                                                                       ##
## This program is distributed in the hope that it will be useful,       ##
## but WITHOUT ANY WARRANTY; without even the implied warranty of        ##
## MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the          ##
## GNU General Public License for more details.                          ##
##                                                                       ##
## You should have received a copy of the GNU General Public License     ##
## along with this program. If not, see <https://www.gnu.org/licenses/>. ##
###########################################################################
###########################################################################

"""
Module defining temperature decay functions for Boltzmann selection.

The temperature controls the selection pressure of Boltzmann selection and
replacement. A high temperature flattens the selection probabilities and a
low temperature sharpens them towards the extremes of fitness.
"""

__all__ = (
    "DecayFunctionType",
    "linear_decay_function",
    "exponential_decay_function",
    "get_decay_function",
    "boltzmann_weights"
)

import math
from typing import Callable, Iterable, Literal, TypeAlias

import numpy as np

from evoflow.optimization.evolutionary.errors import ConfigurationError

DecayFunctionType: TypeAlias = Literal["lin", "exp"]


def _validate(initial_value: float, decay_rate: float) -> None:
    if initial_value <= 0.0:
        raise ConfigurationError(
            f"Initial temperature must be greater than 0.0. Got; {initial_value}.")
    if decay_rate < 0.0:
        raise ConfigurationError(
            f"Decay rate must be at least 0.0. Got; {decay_rate}.")


def linear_decay_function(
    initial_value: float,
    decay_rate: float
) -> Callable[[int], float]:
    """
    Create a linear temperature decay function.

    The temperature at epoch `t` is `max(0.0, initial_value - decay_rate * t)`.

    Parameters
    ----------
    `initial_value: float` - The temperature at epoch zero, must be greater
    than zero.

    `decay_rate: float` - The amount the temperature drops per epoch, must
    not be negative.

    Returns
    -------
    `(int) -> float` - A linear decay function, returns the temperature at a
    given epoch. The arguments given to this function are assigned as
    attributes to the function instance returned.

    Raises
    ------
    `ConfigurationError` - If the initial value is not positive or the decay
    rate is negative.
    """
    _validate(initial_value, decay_rate)

    def linear_decay(epoch: int) -> float:
        """Linear decay function."""
        return max(0.0, initial_value - (decay_rate * epoch))

    # Assign arguments as attributes to the function.
    _locals = locals()
    for param in linear_decay_function.__annotations__:
        if param != "return":
            setattr(linear_decay, param, _locals[param])

    return linear_decay


def exponential_decay_function(
    initial_value: float,
    decay_rate: float
) -> Callable[[int], float]:
    """
    Create an exponential temperature decay function.

    The temperature at epoch `t` is `initial_value * exp(-decay_rate * t)`.

    Parameters
    ----------
    `initial_value: float` - The temperature at epoch zero, must be greater
    than zero.

    `decay_rate: float` - The exponential decay constant, must not be
    negative.

    Returns
    -------
    `(int) -> float` - An exponential decay function, returns the
    temperature at a given epoch. The arguments given to this function are
    assigned as attributes to the function instance returned.

    Raises
    ------
    `ConfigurationError` - If the initial value is not positive or the decay
    rate is negative.
    """
    _validate(initial_value, decay_rate)

    def exponential_decay(epoch: int) -> float:
        """Exponential decay function."""
        return initial_value * math.exp(-decay_rate * epoch)

    # Assign arguments as attributes to the function.
    _locals = locals()
    for param in exponential_decay_function.__annotations__:
        if param != "return":
            setattr(exponential_decay, param, _locals[param])

    return exponential_decay


def get_decay_function(
    decay_type: DecayFunctionType,
    initial_value: float,
    decay_rate: float
) -> Callable[[int], float]:
    """
    Create a temperature decay function of the given type.

    Parameters
    ----------
    `decay_type: DecayFunctionType` - The type of decay function to create:
        - "lin" - Linear decay function.
        - "exp" - Exponential decay function.

    `initial_value: float` - The temperature at epoch zero.

    `decay_rate: float` - The decay rate of the temperature.

    Returns
    -------
    `(int) -> float` - The decay function, returns the temperature at a
    given epoch.

    Raises
    ------
    `ConfigurationError` - If the decay type is not one of the supported
    types, the initial value is not positive or the decay rate is negative.
    """
    match decay_type:
        case "lin":
            return linear_decay_function(initial_value, decay_rate)
        case "exp":
            return exponential_decay_function(initial_value, decay_rate)
        case _:
            raise ConfigurationError(
                f"Unknown decay type. Got; {decay_type!r}.")


def boltzmann_weights(
    fitness_values: Iterable[float],
    temperature: float,
    eliminate: bool = False
) -> list[float]:
    """
    Boltzmann weights of the given fitness values at a temperature.

    For selection the weight of fitness `f` is `exp((f - f_max) / T)` and
    for elimination it is `exp((f_min - f) / T)`, proportional to
    `exp(f / T)` and `exp(-f / T)` respectively. Shifting by the extreme
    fitness keeps every weight in `[0, 1]` with the extreme itself
    weighted one, so the weights never overflow. A temperature of zero or
    less is treated as the smallest positive float.

    Parameters
    ----------
    `fitness_values: Iterable[float]` - The fitness values to weight.

    `temperature: float` - The current temperature.

    `eliminate: bool = False` - Whether to favour low fitness values, for
    selecting individuals to eliminate.
    """
    values = np.asarray(list(fitness_values), dtype=np.float64)
    if values.size == 0:
        return []
    temperature = max(temperature, np.finfo(np.float64).tiny)
    with np.errstate(over="ignore", under="ignore"):
        if eliminate:
            exponents = (values.min() - values) / temperature
        else:
            exponents = (values - values.max()) / temperature
        weights = np.exp(exponents)
    return weights.tolist()
