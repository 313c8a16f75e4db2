from i2cmaster.core.models import I2cDevice
from i2cmaster.core.frontend import i2c_request_layout, i2c_response_layout
from litex.soc.interconnect import stream
from migen import Module, Signal, FSM, If, NextValue, NextState


class PCF8574(I2cDevice, Module):
    """PCF8574 8b I/O expander, refreshed through an I2cMasterStream.

    `outputs` is written then the pins are read back into `inputs`, in a loop. Pins meant to be
    used as inputs must have their `outputs` bit set (quasi-bidirectional port).

    Inputs:
    - outputs: Signal(8) - port value to write
    - i2c_sink: stream.Endpoint(i2c_response_layout), connect to I2cMasterStream.source

    Outputs:
    - inputs: Signal(8) - last port value read
    - inputs_valid: Signal() - `inputs` was read at least once
    - i2c_source: stream.Endpoint(i2c_request_layout), connect to I2cMasterStream.sink
    """
    def __init__(self, address_pins=0):
        assert address_pins >= 0
        assert address_pins < 8
        super().__init__(address=0b0100000 + address_pins)

        # inputs
        self.outputs = outputs = Signal(8, reset=0xFF)
        self.i2c_sink = i2c_sink = stream.Endpoint(i2c_response_layout())

        # outputs
        self.inputs = inputs = Signal(8)
        self.inputs_valid = inputs_valid = Signal()
        self.i2c_source = i2c_source = stream.Endpoint(i2c_request_layout())

        # # #
        self.comb += [
            i2c_source.address.eq(self.address),
            i2c_source.data.eq(outputs),
        ]

        self.submodules.fsm = fsm = FSM("WRITE")
        fsm.act("WRITE",
            i2c_source.valid.eq(1),
            If(i2c_source.ready,
                NextState("WRITE_ACK"),
            ),
        )
        fsm.act("WRITE_ACK",
            i2c_sink.ready.eq(1),
            If(i2c_sink.valid,
                If(i2c_sink.addr_nack,
                    NextState("WRITE"),
                ).Else(
                    NextState("READ"),
                ),
            ),
        )
        fsm.act("READ",
            i2c_source.valid.eq(1),
            i2c_source.read.eq(1),
            If(i2c_source.ready,
                NextState("READ_ACK"),
            ),
        )
        fsm.act("READ_ACK",
            i2c_sink.ready.eq(1),
            If(i2c_sink.valid,
                If(i2c_sink.addr_nack,
                    NextState("READ"),
                ).Else(
                    NextValue(inputs, i2c_sink.data),
                    NextValue(inputs_valid, 1),
                    NextState("WRITE"),
                ),
            ),
        )
