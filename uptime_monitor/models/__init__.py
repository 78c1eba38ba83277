"""数据模型模块"""

from .probe import (
    ProbeOutcome, Verdict, ProbeResult, CrossCheckEvidence, CycleReport, AlertMessage
)

__all__ = ['ProbeOutcome', 'Verdict', 'ProbeResult', 'CrossCheckEvidence',
           'CycleReport', 'AlertMessage']
