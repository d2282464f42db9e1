from typing import List, Optional

from crogentx.core.models import Agent, Transaction
from crogentx.ports.record_source_port import RecordSourcePort


class StaticRecordSource(RecordSourcePort):
    def __init__(self,
                 transactions: Optional[List[Transaction]] = None,
                 agents: Optional[List[Agent]] = None,
                 ):
        self._transactions = list(transactions or [])
        self._agents = list(agents or [])

    def get_transactions(self):
        return self._transactions

    def get_agents(self):
        return self._agents
