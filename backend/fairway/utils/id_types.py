from typing import NewType

AuditLogId = NewType("AuditLogId", int)
BetId = NewType("BetId", int)
LeagueId = NewType("LeagueId", int)
PlayerId = NewType("PlayerId", int)
PlayerProfileId = NewType("PlayerProfileId", int)
TeamId = NewType("TeamId", int)
TournamentId = NewType("TournamentId", int)
TransactionId = NewType("TransactionId", int)
UserId = NewType("UserId", int)
