###########################################################################
###########################################################################
## Module defining custom CLI progress bars.                             ##
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

"""Module defining a progress bar for evolutionary runs."""

import os
import threading
from time import sleep
from types import TracebackType

import psutil
from tqdm import tqdm

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"

__all__ = (
    "ResourceProgressBar",
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class ResourceProgressBar:
    """
    A tqdm based progress bar which displays run statistics alongside the
    memory and CPU usage of the process.

    The usage statistics are refreshed by a daemon thread, ten times per
    second by default. The progress bar can be used as a context manager,
    which closes it on exit.
    """

    __slots__ = {
        "__process": "Process used for getting resource usage statistics.",
        "__postfix": "Postfix dictionary used for updating the progress bar.",
        "__progress_bar": "The progress bar itself.",
        "__resource_update_interval": "Interval between resource updates.",
        "__running": "A boolean variable used for stopping the update thread.",
        "__resource_thread": "Thread used for updating resource statistics."
    }

    def __init__(
        self,
        total: int | None = None,
        desc: str | None = "Evolving",
        unit: str = "epoch",
        initial: int = 0,
        leave: bool = False,
        colour: str = "cyan",
        disable: bool = False,
        resource_update_interval: float = 0.1
    ) -> None:
        """
        Create a resource usage progress bar.

        Parameters
        ----------
        `total: int | None = None` - The expected number of epochs, None if
        the run is not bounded by an epoch limit.

        `disable: bool = False` - Whether to hide the progress bar, the
        resource thread is not started if hidden.

        See `tqdm.tqdm` for a description of the other parameters.
        """
        self.__process = psutil.Process(os.getpid())
        self.__postfix: dict[str, str] = {
            "Mem(Mb)": self.__get_mem(),
            "CPU(%)": self.__get_cpu()
        }
        self.__progress_bar = tqdm(
            initial=initial,
            total=total,
            desc=desc,
            unit=unit,
            leave=leave,
            colour=colour,
            disable=disable,
            postfix=self.__postfix
        )
        self.__resource_update_interval: float = resource_update_interval
        self.__running: bool = not disable
        self.__resource_thread = threading.Thread(
            target=self.__update_resources, daemon=True)
        if self.__running:
            self.__resource_thread.start()

    def __enter__(self) -> "ResourceProgressBar":
        """Enter the progress bar context."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None
    ) -> None:
        """Close the progress bar on leaving the context."""
        self.close()

    def __get_mem(self) -> str:
        """Get current memory usage in megabytes."""
        memory = self.__process.memory_info().rss / (1024 ** 2)
        return str(int(memory)).zfill(5)

    def __get_cpu(self) -> str:
        """Get cpu usage in percent."""
        return format(self.__process.cpu_percent(), "0.2f").zfill(6)

    def __update_resources(self) -> None:
        """Target for the resource thread."""
        while self.__running:
            self.__postfix["Mem(Mb)"] = self.__get_mem()
            self.__postfix["CPU(%)"] = self.__get_cpu()
            sleep(self.__resource_update_interval)

    @property
    def n(self) -> int:
        """Get the current progress bar value."""
        return self.__progress_bar.n

    def get_resource_usage(self) -> tuple[float, float]:
        """
        Get the current memory and CPU usage.

        Returns a tuple of the form `(memory: float, cpu: float)`, where
        memory is the current memory usage in megabytes and cpu is the current
        CPU usage in percent.
        """
        return (float(self.__get_mem()), float(self.__get_cpu()))

    def update(
        self,
        n: int = 1, /,
        data: dict[str, str] | None = None
    ) -> None:
        """
        Update the progress bar.

        Parameters
        ----------
        `n: int = 1` - The number of epochs ran since the last update.

        `data: dict[str, str] | None = None` - Additional statistics to
        display in the progress bar's postfix, None leaves the previous
        statistics unchanged.
        """
        if data is not None:
            self.__progress_bar.set_postfix(data | self.__postfix)
        else:
            self.__progress_bar.set_postfix(self.__postfix)
        self.__progress_bar.update(n)

    def close(self, wait: bool = False) -> None:
        """
        Cleanup and close the progress bar.

        If `wait` is True, block until the resource thread has stopped.

        Once closed, the progress bar cannot be re-opened.
        """
        self.__progress_bar.close()
        was_running: bool = self.__running
        self.__running = False
        if wait and was_running:
            self.__resource_thread.join()
