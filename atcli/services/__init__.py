"""Event bus, logging, serial port and AT command flows."""