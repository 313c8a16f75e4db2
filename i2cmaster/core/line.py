from migen import Module, Signal, Record, If
from migen.fhdl.specials import Tristate
from migen.genlib.cdc import MultiReg


i2c_line_layout = [
    ("o", 1),
    ("oe", 1),
    ("i", 1),
]


class I2cLine(Record):
    """Half-duplex SDA line as seen by the master.

    - drive(v): `o`=v, `oe`=1
    - release(): `oe`=0
    - sample(): `i`, the electrical value of the wire whoever drives it
    """
    def __init__(self, name=None):
        super().__init__(i2c_line_layout, name=name)


class SimulatedLine(Module):
    """SDA wire with a pull-up and a single external peer.

    When the master releases the line, `i` follows `external` (reset=1: nobody pulls it low).
    Bus contention is not modelled: a driving master always wins.
    """
    def __init__(self):
        # inputs
        self.external = external = Signal(reset=1)

        # outputs
        self.line = line = I2cLine()

        # # #
        self.comb += [
            If(line.oe,
                line.i.eq(line.o),
            ).Else(
                line.i.eq(external),
            ),
        ]


class I2cPads(Module):
    """Bind an I2cLine and the SCL output to physical pads.

    SDA is open-drain: the pad is only driven when the line drives a 0, a driven 1 releases it to
    the pull-up. Its input is resynchronized with a MultiReg, which delays `line.i` by two cycles.
    SCL is always master-driven.

    Outputs:
    - sda_oe: Signal() - the pad is pulled low
    """
    def __init__(self, pads):
        # inputs
        self.line = line = I2cLine()
        self.scl = scl = Signal(reset=1)

        # outputs
        self.sda_oe = sda_oe = Signal()

        # # #
        sda_i = Signal()
        self.comb += sda_oe.eq(line.oe & ~line.o)
        self.specials += Tristate(pads.sda, 0, sda_oe, sda_i)
        self.specials += MultiReg(sda_i, line.i)
        self.comb += pads.scl.eq(scl)
