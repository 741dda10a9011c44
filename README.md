# atcli

A terminal user interface for talking to a cellular modem over a serial
line with AT commands. Type commands into the input line, watch the modem's
replies scroll past, and switch to live signal-strength and GPS panels.

## Installation

```
pip install .
```

## Usage

```
atcli --port /dev/serial0 --baud 115200
```

Options (each may also be written with a single dash, e.g. `-port`):

- `--port` — serial device to open (default `/dev/serial0`)
- `--baud` — baud rate (default `115200`)
- `--version` — print version information and exit

The port is opened with no parity and one stop bit. If it cannot be opened,
atcli prints the reason to standard error and exits with status 1.

## The screen

- The top line is the command input.
- The left panel lists the commands you have sent.
- The right panel shows the modem's replies, numbered, with serial errors in
  red; on the signal and GPS screens it shows those panels instead.
- The bottom line shows the port and baud rate and, once a GPS fix has been
  read, the GPS date and UTC time with how many seconds ago it was seen.

Use the Up and Down keys in the command line to walk through earlier
commands; the matching line in the sent-commands panel is highlighted.
Typing while a side panel has focus sends focus back to the input line.

## Commands

Anything typed that does not start with `/` is sent to the modem as an AT
command, followed by `\r\n`, for example `AT+CSQ`. Lines starting with a
slash are handled by atcli itself:

| Command          | Effect                                                     |
|------------------|------------------------------------------------------------|
| `/help`          | Show the list of commands (Close or Escape returns home)   |
| `/quit`          | Close the serial port and exit                             |
| `/atmodem <cmd>` | Send `<cmd>` to the modem                                  |
| `/signal`        | Show the signal-strength panel and poll `AT+CSQ`           |
| `/signal close`  | Stop polling and return to the home screen                 |
| `/gps`           | Power up GNSS and show the GPS panel, polling `AT+CGPSINFO` |
| `/gps close`     | Power GNSS down and return to the home screen              |
| `/log`           | Toggle the log panel (`/log off` or `/log close` hides it) |

An unknown slash command is reported in the log panel.

### Signal panel

Polls `AT+CSQ` one second after starting and then every five seconds. The
CSQ value (0–31) is shown as a percentage, in dBm, as ten bars and as a
rating from "Very Poor" to "Excellent"; a value of 99 is shown as not
detectable.

### GPS panel

`/gps` runs a start-up sequence (`AT+CGNSSPWR=0`, `AT+CGNSSPWR=1`,
`AT+CGNSSTST=1`, `AT+CGNSSPORTSWITCH=0,1`), waiting up to three seconds for
each step's replies, then polls `AT+CGPSINFO` every five seconds. A fix is
shown in decimal degrees and in degrees, minutes and seconds, with altitude,
a `geo:` link, and the GPS date and UTC time. `/gps close` runs
`AT+CGNSSTST=0`, `AT+CGNSSPORTSWITCH=0,0` and `AT+CGNSSPWR=0`. While a
sequence runs, other commands are refused until it finishes.

## What it does not do

- It does not look for serial ports; give the device with `--port`.
- Command history and the log are kept only while the program runs.
- The GPS commands are the ones listed above; modems that use other GNSS
  commands will not show a position.

## Development

```
pip install -e ".[test]"
pytest
```