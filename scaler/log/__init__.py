"""
Structured logging for scaler, built on :mod:`twisted.python.log`.

Every message is emitted with keyword fields; :class:`BoundLog` lets callers
carry context such as the deployment being scaled along with them.
"""
from functools import partial

from twisted.python.log import err, msg


class BoundLog(object):
    """
    A partially applied copy of ``msg`` and ``err``.

    :ivar msg: The function to call for logging non-error messages.
    :ivar err: The function to call for logging errors.
    """
    def __init__(self, msg, err):
        self.msg = msg
        self.err = err

    def bind(self, **fields):
        """
        :return: a new :class:`BoundLog` whose messages also carry ``fields``.
        """
        return self.__class__(partial(self.msg, **fields),
                              partial(self.err, **fields))


log = BoundLog(msg, err).bind(system='scaler')


__all__ = ['BoundLog', 'log']
