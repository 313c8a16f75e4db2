import logging
from math import ceil
from migen import Module, Signal, If

logger = logging.getLogger(__name__)


def half_period_for(sys_clk_freq, bus_freq):
    """Number of sys cycles per half SCL period to get at most `bus_freq`."""
    half_period = int(ceil(sys_clk_freq / bus_freq / 2))
    assert half_period >= 2, f"sys_clk_freq={sys_clk_freq} is too slow for bus_freq={bus_freq}"
    logger.debug("SCL=%.1fHz from sys_clk=%.1fHz (half_period=%d)",
        sys_clk_freq / half_period / 2, sys_clk_freq, half_period)
    return half_period


class I2cClockGen(Module):
    """Free-running bus clock divider.

    `clk` has a period of 2 * `half_period` cycles with a 50% duty cycle. `rising` and `falling`
    are registered together with `clk`, so they are set for exactly one cycle, in the same cycle
    the clock edge they announce appears on `clk`. Logic reacting to them changes its outputs one
    cycle after the edge.

    Parameters:
    - half_period: int >= 2 - number of cycles per half SCL period

    Outputs:
    - clk: Signal() - bus clock level, low after reset
    - rising: Signal() - `clk` just went high
    - falling: Signal() - `clk` just went low
    """
    def __init__(self, half_period=2):
        assert half_period >= 2, f"half_period must be at least 2 (got {half_period})"
        logger.debug("I2cClockGen: half_period=%d", half_period)

        # outputs
        self.clk = clk = Signal()
        self.rising = rising = Signal()
        self.falling = falling = Signal()

        # # #
        cnt = Signal(max=2 * half_period)
        self.sync += [
            rising.eq(0),
            falling.eq(0),
            If(cnt == 2 * half_period - 1,
                cnt.eq(0),
                clk.eq(0),
                falling.eq(1),
            ).Else(
                cnt.eq(cnt + 1),
                If(cnt == half_period - 1,
                    clk.eq(1),
                    rising.eq(1),
                ),
            ),
        ]
