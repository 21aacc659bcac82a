from typing import Final

# constants of the SCSI2SD configuration and the copy loop
max_targets: Final          = 8             # SCSI ids 0..7
max_text_length: Final      = 255           # vendor, prodId, revision, serial
default_sector_size: Final  = 512
chunk_size_bits: Final      = 20
chunk_size: Final           = 1 << chunk_size_bits     # copy in chunks of 1M
device_dir: Final           = '/dev'
