"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    - CORRETOR: Broker (day-to-day pipeline and portfolio work)
    - ADMIN: Brokerage admin (settings, commission configuration)
    """

    CORRETOR = "corretor"
    ADMIN = "admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class PhaseColor(str, Enum):
    """Palette accepted for pipeline phase columns."""

    SLATE = "slate"
    BLUE = "blue"
    VIOLET = "violet"
    AMBER = "amber"
    EMERALD = "emerald"
    RED = "red"
    PINK = "pink"
    CYAN = "cyan"
    ORANGE = "orange"


class LossReason(str, Enum):
    """Why a quote was lost (required when closing as lost)."""

    PRECO = "preco"  # Price above competition
    COBERTURA = "cobertura"  # Insufficient coverage
    SEM_RETORNO = "sem_retorno"  # Client never answered
    DESISTIU = "desistiu"  # Client gave up on buying
    CONCORRENTE = "concorrente"  # Closed with another broker
    OUTRO = "outro"

    @classmethod
    def has_value(cls, value: str | None) -> bool:
        return value in cls._value2member_map_


class QuoteEventType(str, Enum):
    """Quote history event types."""

    MUDANCA_STATUS = "mudanca_status"
    FOLLOW_UP_AGENDADO = "follow_up_agendado"
    # Contact log entries
    LIGACAO = "ligacao"
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    REUNIAO = "reuniao"
    ANOTACAO = "anotacao"

    @classmethod
    def contact_types(cls) -> list[str]:
        """Event types a user may log by hand."""
        return [
            cls.LIGACAO.value,
            cls.EMAIL.value,
            cls.WHATSAPP.value,
            cls.REUNIAO.value,
            cls.ANOTACAO.value,
        ]


class ContactResult(str, Enum):
    POSITIVO = "positivo"
    NEUTRO = "neutro"
    NEGATIVO = "negativo"


class ClientType(str, Enum):
    PF = "PF"  # Pessoa fisica (individual)
    PJ = "PJ"  # Pessoa juridica (company)


class PolicyStatus(str, Enum):
    VIGENTE = "vigente"
    VENCIDA = "vencida"
    CANCELADA = "cancelada"
    RENOVADA = "renovada"


class ClaimStatus(str, Enum):
    NOTIFICADO = "notificado"
    EM_ANALISE = "em_analise"
    APROVADO = "aprovado"
    PAGO = "pago"
    RECUSADO = "recusado"

    @classmethod
    def closed(cls) -> list[str]:
        """Statuses after which a claim is no longer open."""
        return [cls.PAGO.value, cls.RECUSADO.value]


class ConsortiumStatus(str, Enum):
    ATIVO = "ativo"
    CONTEMPLADO = "contemplado"
    CANCELADO = "cancelado"
    QUITADO = "quitado"


class HealthPlanType(str, Enum):
    INDIVIDUAL = "individual"
    FAMILIAR = "familiar"
    EMPRESARIAL = "empresarial"


class HealthPlanStatus(str, Enum):
    ATIVO = "ativo"
    SUSPENSO = "suspenso"
    CANCELADO = "cancelado"


class FinancingStatus(str, Enum):
    ATIVO = "ativo"
    QUITADO = "quitado"
    INADIMPLENTE = "inadimplente"
    CANCELADO = "cancelado"


class CommissionStatus(str, Enum):
    PENDENTE = "pendente"
    RECEBIDA = "recebida"
    PAGA = "paga"
    CANCELADA = "cancelada"

    @classmethod
    def settled(cls) -> list[str]:
        """Statuses that count as revenue."""
        return [cls.RECEBIDA.value, cls.PAGA.value]


# Insurance lines offered by the brokerage ("todos" = catch-all for commission config)
INSURANCE_LINES = {
    "auto": "Auto",
    "residencial": "Residencial",
    "vida": "Vida",
    "saude": "Saúde",
    "empresarial": "Empresarial",
    "viagem": "Viagem",
    "rc": "Responsabilidade Civil",
    "todos": "Todos (Padrão)",
}


class EndorsementType(str, Enum):
    """Endorsement (endosso) kinds: coverage/insured item added, removed or changed."""

    INCLUSAO = "inclusao"
    EXCLUSAO = "exclusao"
    ALTERACAO = "alteracao"


class EndorsementStatus(str, Enum):
    RASCUNHO = "rascunho"
    ENVIADO = "enviado"
    ACEITO = "aceito"
    EMITIDO = "emitido"


class TaskType(str, Enum):
    LIGACAO = "ligacao"
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    REUNIAO = "reuniao"
    VISITA = "visita"
    RENOVACAO = "renovacao"
    DOCUMENTO = "documento"
    OUTRO = "outro"


class TaskPriority(str, Enum):
    BAIXA = "baixa"
    MEDIA = "media"
    ALTA = "alta"


class AlertType(str, Enum):
    """Alert kinds. All but MANUAL are produced by the periodic checks."""

    RENOVACAO_APOLICE = "renovacao_apolice"
    TAREFA_ATRASADA = "tarefa_atrasada"
    SINISTRO_PENDENTE = "sinistro_pendente"
    COMISSAO_PENDENTE = "comissao_pendente"
    ANIVERSARIO_CLIENTE = "aniversario_cliente"
    MANUAL = "manual"


class AlertPriority(str, Enum):
    BAIXA = "baixa"
    MEDIA = "media"
    ALTA = "alta"
    URGENTE = "urgente"
