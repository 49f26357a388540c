"""
lastbeer: unpack Eichhof Lastbeer's BEER.DAT and convert its .SND banks to WAV.
"""
