#!/usr/bin/env python3

import argparse
import logging
from migen import Module, If
from migen.build.generic_platform import Subsignal, Pins
from migen.build.platforms.icestick import Platform
from i2cmaster.core.clkgen import half_period_for
from i2cmaster.core.frontend import I2cMasterStream
from i2cmaster.core.line import I2cPads
from i2cmaster.core.master import I2cMaster
from i2cmaster.devices.temp import LM75


_ios = [
    ("i2c", 0,
        Subsignal("sda", Pins("PMOD:3")),
        Subsignal("scl", Pins("PMOD:2")),
    ),
]


class Top(Module):
    """Poll an LM75 at 100kHz and show the 5 LSBs of the temperature on the user LEDs"""
    def __init__(self, platform, sys_clk_freq=12E6, bus_freq=100E3):
        platform.add_extension(_ios)

        self.submodules.pads = pads = I2cPads(platform.request("i2c"))
        self.submodules.master = master = I2cMaster(pads.line, half_period_for(sys_clk_freq, bus_freq))
        self.submodules.stream = stream = I2cMasterStream(master)
        self.submodules.sensor = sensor = LM75()

        leds = [platform.request("user_led", i) for i in range(5)]
        self.comb += [
            pads.scl.eq(master.scl),
            sensor.i2c_source.connect(stream.sink),
            stream.source.connect(sensor.i2c_sink),
            sensor.temp.ready.eq(1),
        ]
        self.sync += [
            If(sensor.temp.valid,
                *[led.eq(sensor.temp.temp[i]) for i, led in enumerate(leds)]
            ),
        ]


if __name__ == '__main__':
    parser = argparse.ArgumentParser("Icestick LM75 demo")
    parser.add_argument("--build", "-b", action="store_true", help="build the FPGA")
    parser.add_argument("--flash", "-f", action="store_true", help="flash the FPGA")
    parser.add_argument("--verbose", "-v", action="store_true", help="log gateware parameters")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    plat = Platform()

    soc = Top(platform=plat)

    if args.build:
        plat.build(soc, build_dir="build/icestick")
    if args.flash:
        plat.create_programmer().flash(0, "build/icestick/top.bin")
