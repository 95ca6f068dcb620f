from wiifitio._types.records import Measurement, Profile, SaveData
