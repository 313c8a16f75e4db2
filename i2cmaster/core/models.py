class I2cRequest:
    """Host-side description of a single byte transaction."""
    def __init__(self, address, read=False, data=0):
        assert 0 <= address < 0x80
        assert 0 <= data < 0x100
        self.address = address
        self.read = read
        self.data = data

    @property
    def addr_frame(self):
        """Address byte as sent on the bus: address, then R/W as LSB"""
        return (self.address << 1) | (1 if self.read else 0)

    def payload(self):
        """Fields of an `i2c_request_layout` stream Endpoint"""
        return {
            "read": 1 if self.read else 0,
            "address": self.address,
            "data": self.data,
        }

    def __repr__(self):
        if self.read:
            return f"0x{self.address:02X} S R P"
        return f"0x{self.address:02X} S W0x{self.data:02X} P"


class I2cDevice:
    def __init__(self, address):
        self.address = address

    def raw_address_byte(self, read=False):
        return I2cRequest(self.address, read).addr_frame

    def write(self, data):
        return I2cRequest(self.address, read=False, data=data)

    def read(self):
        return I2cRequest(self.address, read=True)
