"""
Decode Wii Fit and Wii Fit Plus save data (FitPlus0.dat / RPHealth.dat).

The save format is undocumented. What is known was reverse engineered from
hex dumps of real saves, with help from the notes by Jansen Price [1]_ and
yoshi314 [2]_. Profiles (name, height, birth date) and body tests (weight,
BMI, balance) are decoded; exercise records are not.

The byte layout is spelled out in `_layout`, the field readers are in
`_codec`, and the walk over profile slots and measurement tables is in
`_protocol`. Getting the bytes off storage is `_reading`.


.. [1] https://jansenprice.com/blog?id=9-Extracting-Data-from-Wii-Fit-Plus-Savegame-Files
.. [2] https://gist.github.com/yoshi314/c63664debc140593c7fccdadc5cea632

"""
from wiifitio.save._reading import read, read_nand, decode
from wiifitio.save._reading import (
    SaveReader, LocalStorage, SAVE_PATHS, scan_paths)
from wiifitio.save._protocol import (
    gen_measurements, gen_profiles, read_profile,
    DecodeObserver, LoggingObserver)
