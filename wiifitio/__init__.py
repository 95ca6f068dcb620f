__version__ = '0.1.0'

# Read Wii Fit body test history and hand it to other devices.
#
#     >>> import wiifitio
#     >>> save_data = wiifitio.read('FitPlus0.dat')
#     >>> save_data.profiles[0].to_frame().latest()

from wiifitio.save import read, read_nand, decode, SaveReader, LocalStorage
from wiifitio._types import Measurement, Profile, SaveData
