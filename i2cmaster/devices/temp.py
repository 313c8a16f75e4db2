from i2cmaster.core.models import I2cDevice
from i2cmaster.core.frontend import i2c_request_layout, i2c_response_layout
from litex.soc.interconnect import stream
from migen import Module, Signal, FSM, If, NextState

lm75_temp_layout = [("temp", 8)]


class LM75(I2cDevice, Module):
    """LM75 temperature sensor, polled through an I2cMasterStream.

    The pointer register is set to the temperature register once, then the temperature MSB (signed
    integer degrees C) is read in a loop. A NACKed request is retried.

    Inputs:
    - i2c_sink: stream.Endpoint(i2c_response_layout), connect to I2cMasterStream.source

    Outputs:
    - i2c_source: stream.Endpoint(i2c_request_layout), connect to I2cMasterStream.sink
    - temp: stream.Endpoint(lm75_temp_layout) - last temperature read
    """
    TEMPERATURE = 0x00

    def __init__(self, address_pins=0):
        assert 0 <= address_pins < 8
        super().__init__(address=0b1001000 + address_pins)

        # inputs
        self.i2c_sink = i2c_sink = stream.Endpoint(i2c_response_layout())

        # outputs
        self.i2c_source = i2c_source = stream.Endpoint(i2c_request_layout())
        self.temp = temp = stream.Endpoint(lm75_temp_layout)

        # # #
        self.comb += [
            i2c_source.address.eq(self.address),
        ]

        update = Signal()
        self.sync += [
            If(update,
                temp.temp.eq(i2c_sink.data),
                temp.valid.eq(1),
            ).Elif(temp.ready,
                temp.valid.eq(0),
            ),
        ]

        self.submodules.fsm = fsm = FSM("POINTER")
        fsm.act("POINTER",
            i2c_source.valid.eq(1),
            i2c_source.data.eq(self.TEMPERATURE),
            If(i2c_source.ready,
                NextState("POINTER_ACK"),
            ),
        )
        fsm.act("POINTER_ACK",
            i2c_sink.ready.eq(1),
            If(i2c_sink.valid,
                If(i2c_sink.addr_nack | i2c_sink.data_nack,
                    NextState("POINTER"),
                ).Else(
                    NextState("READ_TEMP"),
                ),
            ),
        )
        fsm.act("READ_TEMP",
            i2c_source.valid.eq(1),
            i2c_source.read.eq(1),
            If(i2c_source.ready,
                NextState("READBACK_TEMP"),
            ),
        )
        fsm.act("READBACK_TEMP",
            i2c_sink.ready.eq(1),
            If(i2c_sink.valid,
                update.eq(~i2c_sink.addr_nack),
                NextState("READ_TEMP"),
            ),
        )
