"""User-facing notification texts (pt-BR) for dashboard mutations."""

APPOINTMENT_CONFLICT = "Existe um conflito de horário com outro agendamento"
APPOINTMENT_CREATED = "Agendamento criado com sucesso"
APPOINTMENT_UPDATED = "Agendamento atualizado com sucesso"
APPOINTMENT_DELETED = "Agendamento excluído com sucesso"
APPOINTMENT_CANCELLED = "Agendamento cancelado com sucesso"
APPOINTMENT_NOT_FOUND = "Agendamento não encontrado"
INVALID_INTERVAL = "O horário de início deve ser anterior ao horário de término"

AGENDA_NOT_FOUND = "Agenda não encontrada"

CLIENT_DELETED = "Cliente excluído com sucesso"
CLIENT_NOT_FOUND = "Cliente não encontrado"
CLIENT_DUPLICATE_PHONE = "Já existe um cliente com este telefone"

TOKEN_DELETED = "Token excluído com sucesso"
TOKEN_NOT_FOUND = "Token não encontrado"
