"""Accessory functions."""
# std imports
import logging
import importlib.metadata

__all__ = ('get_version', 'make_logger', 'repr_mapping', 'parse_address')


def get_version():
    """Return version string of the installed distribution."""
    return importlib.metadata.version("rconshell")


_DEFAULT_LOGFMT = ' '.join(('%(asctime)s',
                            '%(levelname)s',
                            '%(filename)s:%(lineno)d',
                            '%(message)s'))


def make_logger(name, loglevel='info', logfile=None, logfmt=_DEFAULT_LOGFMT):
    """Create and return simple logger for given arguments."""
    lvl = getattr(logging, loglevel.upper())
    logging.getLogger().setLevel(lvl)

    _cfg = {'format': logfmt}
    if logfile:
        _cfg['filename'] = logfile
    logging.basicConfig(**_cfg)
    return logging.getLogger(name)


def repr_mapping(mapping):
    """Return printable string, 'key=value [key=value ...]' for mapping."""
    return ' '.join('='.join(map(str, kv)) for kv in mapping.items())


def parse_address(address, default_port):
    """
    Split ``host[:port]`` into a ``(host, port)`` tuple.

    Example::

        >>> parse_address('mc.example.org:25576', 25575)
        ('mc.example.org', 25576)
        >>> parse_address('[::1]', 25575)
        ('::1', 25575)

    :raises ValueError: When the port is not a number.
    """
    host, port = address, default_port
    if address.startswith('['):
        host, _, rest = address[1:].partition(']')
        if rest.startswith(':'):
            port = int(rest[1:])
    elif address.count(':') == 1:
        host, port_str = address.split(':')
        port = int(port_str)
    return host, port
