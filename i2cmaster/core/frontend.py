from migen import Module, If, FSM, NextState, Cat
from litex.soc.interconnect import stream
from litex.soc.interconnect.csr import AutoCSR, CSRStorage, CSRStatus


def i2c_request_layout(addr_bits=7, data_bits=8):
    return [
        ("read", 1),
        ("address", addr_bits),
        ("data", data_bits),
    ]


def i2c_response_layout(data_bits=8):
    return [
        ("data", data_bits),
        ("addr_nack", 1),
        ("data_nack", 1),
    ]


class I2cMasterStream(Module):
    """Stream interface to an I2cMaster: one request, one transaction, one response.

    Every transaction ends with a Stop: `enable` is only held until the master leaves IDLE.

    Inputs:
    - sink: stream.Endpoint(i2c_request_layout) - transaction to perform
      - read: 1 => read a byte, 0 => write `data`
      - address: 7b address of the device
      - data: byte to write. Ignored on reads.

    Outputs:
    - source: stream.Endpoint(i2c_response_layout) - outcome of the transaction
      - data: byte read. Only valid for read transactions that weren't NACKed
      - addr_nack: the device didn't acknowledge its address
      - data_nack: the device didn't acknowledge the byte written
    """
    def __init__(self, master):
        addr_bits = len(master.address)
        data_bits = len(master.write_data)

        # inputs
        self.sink = sink = stream.Endpoint(i2c_request_layout(addr_bits, data_bits))

        # outputs
        self.source = source = stream.Endpoint(i2c_response_layout(data_bits))

        # # #
        self.comb += [
            master.read.eq(sink.read),
            master.address.eq(sink.address),
            master.write_data.eq(sink.data),
            source.data.eq(master.read_data),
            source.addr_nack.eq(master.addr_nack),
            source.data_nack.eq(master.data_nack),
        ]

        self.submodules.fsm = fsm = FSM("IDLE")
        fsm.act("IDLE",
            If(sink.valid & master.ready,
                NextState("REQUEST"),
            ),
        )
        fsm.act("REQUEST",
            master.enable.eq(1),
            If(~master.ready,  # latched by the master
                sink.ready.eq(1),
                NextState("TRANSFER"),
            ),
        )
        fsm.act("TRANSFER",
            If(master.ready,
                NextState("RESPONSE"),
            ),
        )
        fsm.act("RESPONSE",
            source.valid.eq(1),
            If(source.ready,
                NextState("IDLE"),
            ),
        )


class I2cMasterCSR(Module, AutoCSR):
    """CSR interface to an I2cMaster.

    - control: bit 0 = read. Writing this register starts a transaction, as soon as the master is
      ready if one is already running.
    - address, write_data: transaction parameters, must be written before `control`
    - read_data: last byte read
    - status: bit 0 = ready (idle, no transaction pending), bit 1 = addr_nack, bit 2 = data_nack,
      bit 3 = fault
    """
    def __init__(self, master):
        addr_bits = len(master.address)
        data_bits = len(master.write_data)

        self._control = CSRStorage(1, name="control")
        self._address = CSRStorage(addr_bits, name="address")
        self._write_data = CSRStorage(data_bits, name="write_data")
        self._read_data = CSRStatus(data_bits, name="read_data")
        self._status = CSRStatus(4, name="status")

        # # #
        self.submodules.fsm = fsm = FSM("IDLE")
        fsm.act("IDLE",
            If(self._control.re,
                NextState("PENDING"),
            ),
        )
        fsm.act("PENDING",
            If(master.ready,
                NextState("REQUEST"),
            ),
        )
        fsm.act("REQUEST",
            master.enable.eq(1),
            If(~master.ready,  # latched by the master
                If(self._control.re,
                    NextState("PENDING"),
                ).Else(
                    NextState("IDLE"),
                ),
            ),
        )
        self.comb += [
            master.read.eq(self._control.storage[0]),
            master.address.eq(self._address.storage),
            master.write_data.eq(self._write_data.storage),
            self._read_data.status.eq(master.read_data),
            self._status.status.eq(Cat(
                master.ready & fsm.ongoing("IDLE"),
                master.addr_nack,
                master.data_nack,
                master.fault,
            )),
        ]
