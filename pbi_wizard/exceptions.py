"""
Exceções de domínio do assistente.

Os serviços levantam estas exceções; as rotas as traduzem em HTTPException.
"""


class ParseError(ValueError):
    """Arquivo com extensão não suportada, vazio ou com estrutura inválida."""


class SuggestionError(RuntimeError):
    """Falha do serviço de IA (rede, resposta fora do schema, erro HTTP)."""


class InvalidStatusTransition(RuntimeError):
    """Transição de status não permitida no pipeline de um arquivo."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Transição inválida: {current} -> {target}")

