"""
Remember The Milk client - signed REST API access and typed task models.

Usage:
    from rememberthemilk import RTMClient, Perms

    client = RTMClient("api key", "api secret")
    attempt = client.auth.start_auth(Perms.WRITE)
    # Send the user to attempt.url, then:
    if client.auth.check_auth(attempt):
        tasks = client.tasks.get_filtered("status:incomplete AND due:today")
        for lst, series in tasks.iter_series():
            print(series.name)
"""

from rememberthemilk.client import RTMClient, Endpoints
from rememberthemilk.config import RTMConfig, Settings
from rememberthemilk.exceptions import (
    RTMError,
    TransportError,
    DecodeError,
    ProtocolError,
    NotYetAuthorizedError,
    AuthRequiredError,
    AuthFlowError,
    ConfigError,
)
from rememberthemilk.models import (
    Task, TaskSeries, Note, RRule, RTMLists, RTMTasks, RTMList,
    Timeline, Transaction, TaskChange, TimeLeft, TimeLeftKind,
)
from rememberthemilk.session import Perms, User, AuthorizationAttempt
from rememberthemilk.signing import sign_params

__all__ = [
    "RTMClient",
    "Endpoints",
    "RTMConfig",
    "Settings",
    "RTMError",
    "TransportError",
    "DecodeError",
    "ProtocolError",
    "NotYetAuthorizedError",
    "AuthRequiredError",
    "AuthFlowError",
    "ConfigError",
    "Task",
    "TaskSeries",
    "Note",
    "RRule",
    "RTMLists",
    "RTMTasks",
    "RTMList",
    "Timeline",
    "Transaction",
    "TaskChange",
    "TimeLeft",
    "TimeLeftKind",
    "Perms",
    "User",
    "AuthorizationAttempt",
    "sign_params",
]

__version__ = "0.4.7"
