# --- Legal assistant presets ---
from functions.llm import ChatClient
from functions.util import generate_gpt_response

ANALYSIS_PROMPT = """
Você é um assistente jurídico especializado na análise de documentos legais.
Sua tarefa é analisar o documento fornecido e extrair:
1. Principais pontos legais
2. Possíveis problemas ou inconsistências
3. Referências a leis e jurisprudência relevantes
4. Recomendações para o magistrado

Forneça sua análise de forma estruturada e concisa.
""".strip()

DRAFT_PROMPT = """
Você é um assistente jurídico especializado na redação de documentos legais.
Sua tarefa é redigir um(a) {response_type} com base nos detalhes do caso fornecido.
Use linguagem formal e jurídica apropriada.
Estruture o documento conforme os padrões jurídicos brasileiros.
Inclua citações de leis e jurisprudência relevantes quando apropriado.
""".strip()

REFERENCES_PROMPT = """
Você é um assistente jurídico especializado em pesquisa legal.
Sua tarefa é fornecer referências legais relevantes para a consulta fornecida, incluindo:
1. Leis e códigos aplicáveis
2. Jurisprudência relevante
3. Doutrinas e entendimentos predominantes
4. Súmulas e orientações de tribunais superiores

Forneça sua resposta de forma estruturada e com citações precisas.
""".strip()


async def analyze_legal_document(client: ChatClient, document_text: str) -> str:
    return await generate_gpt_response(client, document_text, ANALYSIS_PROMPT)


async def draft_legal_response(client: ChatClient, case_details: str, response_type: str) -> str:
    prompt = DRAFT_PROMPT.format(response_type=response_type)
    return await generate_gpt_response(client, case_details, prompt)


async def get_legal_references(client: ChatClient, query: str) -> str:
    return await generate_gpt_response(client, query, REFERENCES_PROMPT)
