from migen import Module, Signal, If, FSM, NextState, NextValue, Case, Cat
from migen.fhdl.decorators import ResetInserter
from i2cmaster.core.clkgen import I2cClockGen
from i2cmaster.core.line import I2cLine


class I2cMasterCore(Module):
    """Sequence one I2C transaction, one bit per bus clock period.

    Start, 7b address + R/W, address Ack, one data byte, data Ack, Stop. The FSM only moves on the
    strobes of an I2cClockGen: SDA is updated on `falling` (SCL is low) while sampling and state
    transitions happen on `rising` (SCL is high).

    The Start condition is generated while SCL is still released (SCL output disabled) and SCL is
    enabled on the following rising strobe, so that the first falling edge of SCL precedes the
    first address bit. The Stop condition is generated by pulling SDA low on `falling` then
    releasing it high on `rising`.

    After the data Ack of a write, if `enable` is still set the FSM goes back to IDLE without a Stop
    and immediately latches the next transaction.

    Parameters:
    - line: I2cLine - SDA line
    - addr_bits: address width
    - data_bits: data width

    Inputs:
    - enable: Signal() - start a transaction (level, sampled in IDLE and in LOAD_ACK)
    - read: Signal() - 1: read, 0: write
    - address: Signal(addr_bits)
    - write_data: Signal(data_bits)
    - rising, falling: Signal() - strobes from I2cClockGen

    Outputs:
    - ready: Signal() - IDLE, a new transaction can be started
    - read_data: Signal(data_bits) - last byte read. Updated when a read transaction reaches END.
    - scl_oe: Signal() - if cleared, SCL must be held high
    - addr_nack: Signal() - the address of the last transaction wasn't acknowledged
    - data_nack: Signal() - the data written by the last transaction wasn't acknowledged
    - fault: Signal() - the FSM state register holds an invalid value. Recovered on the next cycle.
    """
    def __init__(self, line, addr_bits=7, data_bits=8):
        assert addr_bits >= 1
        assert data_bits >= 1

        # inputs
        self.enable = enable = Signal()
        self.read = read = Signal()
        self.address = address = Signal(addr_bits)
        self.write_data = write_data = Signal(data_bits)
        self.rising = rising = Signal()
        self.falling = falling = Signal()

        # outputs
        self.ready = ready = Signal()
        self.read_data = read_data = Signal(data_bits)
        self.scl_oe = scl_oe = Signal()
        self.addr_nack = addr_nack = Signal()
        self.data_nack = data_nack = Signal()
        self.fault = fault = Signal()

        # # #
        self.sda_o = sda_o = Signal(reset=1)
        self.sda_oe = sda_oe = Signal()
        self.addr_frame = addr_frame = Signal(addr_bits + 1)
        self.data_frame = data_frame = Signal(data_bits)
        index = Signal(max=max(addr_bits + 1, data_bits))
        sda = line.i

        self.comb += [
            line.o.eq(sda_o),
            line.oe.eq(sda_oe),
        ]

        self.submodules.fsm = fsm = FSM("IDLE")
        fsm.act("IDLE",
            If(rising & enable,
                NextValue(addr_frame, Cat(read, address)),
                NextValue(data_frame, write_data),
                NextValue(addr_nack, 0),
                NextValue(data_nack, 0),
                NextState("START"),
            ),
        )
        fsm.act("START",
            If(falling,  # SCL is still released: SDA falls while SCL is high
                NextValue(sda_o, 0),
                NextValue(sda_oe, 1),
            ),
            If(rising,
                NextValue(scl_oe, 1),
                NextValue(index, addr_bits),
                NextState("SEND_ADDRESS"),
            ),
        )
        fsm.act("SEND_ADDRESS",
            If(falling,
                NextValue(sda_oe, 1),
                Case(index, {
                    i: NextValue(sda_o, addr_frame[i]) for i in range(addr_bits + 1)
                }),
            ),
            If(rising,
                If(index == 0,
                    NextState("ADDR_ACK"),
                ).Else(
                    NextValue(index, index - 1),
                ),
            ),
        )
        fsm.act("ADDR_ACK",
            If(falling,
                NextValue(sda_oe, 0),
            ),
            If(rising,
                If(~sda,
                    NextValue(index, data_bits - 1),
                    If(addr_frame[0],
                        NextState("READ_DATA"),
                    ).Else(
                        NextState("WRITE_DATA"),
                    ),
                ).Else(
                    NextValue(addr_nack, 1),
                    NextState("END"),
                ),
            ),
        )
        fsm.act("WRITE_DATA",
            If(falling,
                NextValue(sda_oe, 1),
                Case(index, {
                    i: NextValue(sda_o, data_frame[i]) for i in range(data_bits)
                }),
            ),
            If(rising,
                If(index == 0,
                    NextState("LOAD_ACK"),
                ).Else(
                    NextValue(index, index - 1),
                ),
            ),
        )
        fsm.act("READ_DATA",
            If(falling,
                NextValue(sda_oe, 0),
            ),
            If(rising,
                Case(index, {
                    i: NextValue(data_frame[i], sda) for i in range(data_bits)
                }),
                If(index == 0,
                    NextState("SEND_ACK"),
                ).Else(
                    NextValue(index, index - 1),
                ),
            ),
        )
        fsm.act("LOAD_ACK",
            If(falling,
                NextValue(sda_oe, 0),
            ),
            If(rising,
                If(~sda & enable,
                    # back-to-back: no Stop, SCL held high until the next transaction starts
                    NextValue(scl_oe, 0),
                    NextState("IDLE"),
                ).Else(
                    NextValue(data_nack, sda),
                    NextState("END"),
                ),
            ),
        )
        fsm.act("SEND_ACK",
            If(falling,
                NextValue(sda_o, 0),
                NextValue(sda_oe, 1),
            ),
            If(rising,
                NextValue(read_data, data_frame),
                NextState("END"),
            ),
        )
        fsm.act("END",
            If(falling,  # Stop setup
                NextValue(sda_o, 0),
                NextValue(sda_oe, 1),
            ),
            If(rising,  # SDA rises while SCL is high
                NextValue(sda_o, 1),
                NextValue(scl_oe, 0),
                NextState("IDLE"),
            ),
        )
        self.comb += ready.eq(fsm.ongoing("IDLE") & ~fault)

    def do_finalize(self):
        # an invalid state decodes as IDLE: force it back to a real IDLE and release the bus
        self.fsm.finalize()
        self.comb += self.fault.eq(self.fsm.state >= len(self.fsm.encoding))
        self.fsm.comb += [
            If(self.fault,
                self.fsm.next_state.eq(self.fsm.state.reset),
            ),
        ]
        self.sync += [
            If(self.fault,
                self.sda_oe.eq(0),
                self.scl_oe.eq(0),
            ),
        ]


class I2cMaster(Module):
    """Single transaction I2C master: I2cClockGen + I2cMasterCore.

    Parameters:
    - line: I2cLine - SDA line (see SimulatedLine and I2cPads)
    - half_period: number of cycles per half SCL period, >= 2
    - addr_bits: address width
    - data_bits: data width

    Inputs:
    - reset: Signal() - while set, every register goes back to its reset value: IDLE, frames
      cleared, SDA released, SCL held high. The registers are reset synchronously (ResetInserter),
      on the first clock edge with `reset` set, while `ready`, SDA output enable and `scl` are
      gated combinationally so they already show the reset values in that first cycle.
    - enable, read, address, write_data: see I2cMasterCore

    Outputs:
    - scl: Signal() - SCL pad value. High when the master is idle.
    - ready, read_data, addr_nack, data_nack, fault: see I2cMasterCore
    """
    def __init__(self, line, half_period=2, addr_bits=7, data_bits=8):
        # inputs
        self.reset = reset = Signal()

        # outputs
        self.ready = ready = Signal()
        self.scl = scl = Signal(reset=1)

        # # #
        core_line = I2cLine()
        self.submodules.clkgen = clkgen = ResetInserter()(I2cClockGen(half_period))
        self.submodules.core = core = ResetInserter()(I2cMasterCore(core_line, addr_bits, data_bits))

        self.enable = core.enable
        self.read = core.read
        self.address = core.address
        self.write_data = core.write_data
        self.read_data = core.read_data
        self.addr_nack = core.addr_nack
        self.data_nack = core.data_nack
        self.fault = core.fault

        self.comb += [
            clkgen.reset.eq(reset),
            core.reset.eq(reset),
            core.rising.eq(clkgen.rising),
            core.falling.eq(clkgen.falling),
            line.o.eq(core_line.o),
            line.oe.eq(core_line.oe & ~reset),
            core_line.i.eq(line.i),
            scl.eq(clkgen.clk | ~core.scl_oe | reset),
            ready.eq(core.ready & ~reset),
        ]
