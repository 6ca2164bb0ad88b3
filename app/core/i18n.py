# app/core/i18n.py
from fastapi import Request

DEFAULT_LOCALE = "pt-BR"

TRANSLATIONS: dict[str, dict[str, str]] = {
    "pt-BR": {
        # 공통
        "common.invalid_data": "Dados inválidos.",
        "common.internal_error": "Não foi possível processar a solicitação.",
        "common.forbidden": "Acesso não permitido.",
        "common.not_found": "Recurso não encontrado.",
        "common.request_too_large": "Requisição muito grande.",
        "common.rate_limited": "Muitas tentativas. Aguarde um pouco e tente novamente.",

        # 인증
        "auth.invalid_data": "Dados inválidos.",
        "auth.email_invalid": "E-mail inválido.",
        "auth.password_weak": "Senha precisa ter no mínimo 8 caracteres com letras e números.",
        "auth.email_exists": "Não foi possível criar a conta. Tente outro e-mail.",
        "auth.create_error": "Não foi possível criar a conta.",
        "auth.session_error": "Não foi possível iniciar a sessão.",
        "auth.invalid_credentials": "E-mail ou senha incorretos.",
        "auth.session_missing": "Sessão não encontrada.",
        "auth.session_expired": "Sessão expirada.",
        "auth.session_invalid": "Sessão inválida.",
        "auth.logout_success": "Sessão encerrada.",
        "auth.password_incorrect": "Senha incorreta.",
        "auth.delete_confirm": "Digite EXCLUIR MINHA CONTA para confirmar.",
        "auth.delete_success": "Sua conta e todos os seus dados foram excluídos.",

        # OAuth
        "oauth.google_not_configured": "Login com Google não está configurado.",
        "oauth.apple_not_configured": "Login com Apple não está configurado.",
        "oauth.token_required": "Token de autenticação é obrigatório.",
        "oauth.invalid_token": "Token de autenticação inválido.",
        "oauth.email_not_verified": "O e-mail precisa estar verificado.",

        # 박스 아이템
        "box.title_required": "Dê um título ao que você quer guardar.",
        "box.title_too_long": "Título muito longo.",
        "box.content_too_long": "Conteúdo muito longo.",
        "box.save_error": "Não foi possível salvar.",
        "box.not_found": "Item não encontrado.",
        "box.deleted": "Item removido.",

        # 보호자
        "guardian.name_required": "Informe o nome da pessoa.",
        "guardian.not_found": "Pessoa não encontrada.",
        "guardian.deleted": "Pessoa removida.",
        "guardian.notes_too_long": "As notas são muito longas. Máximo de 1000 caracteres.",
        "guardian.pin_too_short": "O PIN deve ter pelo menos 4 caracteres.",

        # 공유 링크
        "share.default_name": "Link de Compartilhamento",
        "share.create_error": "Não foi possível criar o link.",
        "share.not_found": "Link não encontrado.",
        "share.deleted": "Link removido com sucesso.",
        "share.link_expired": "Este link expirou ou não está mais disponível.",
        "share.invalid_pin": "PIN incorreto.",
        "share.access_error": "Não foi possível acessar o conteúdo.",
        "share.memorial_message": "Este é o memorial de {name}. As informações aqui foram deixadas para ajudar você.",
        "share.emergency_message": "Acesso de emergência às informações de {name}.",

        # 분석
        "analytics.track_error": "Não foi possível registrar o evento.",
    },
    "en": {
        "common.invalid_data": "Invalid data.",
        "common.internal_error": "Unable to process the request.",
        "common.forbidden": "Access denied.",
        "common.not_found": "Resource not found.",
        "common.request_too_large": "Request too large.",
        "common.rate_limited": "Too many attempts. Please wait and try again.",

        "auth.invalid_data": "Invalid data.",
        "auth.email_invalid": "Invalid email.",
        "auth.password_weak": "Password must have at least 8 characters with letters and numbers.",
        "auth.email_exists": "Unable to create account. Try another email.",
        "auth.create_error": "Unable to create account.",
        "auth.session_error": "Unable to start session.",
        "auth.invalid_credentials": "Invalid email or password.",
        "auth.session_missing": "Session not found.",
        "auth.session_expired": "Session expired.",
        "auth.session_invalid": "Invalid session.",
        "auth.logout_success": "Session ended.",
        "auth.password_incorrect": "Incorrect password.",
        "auth.delete_confirm": "Type DELETE MY ACCOUNT to confirm.",
        "auth.delete_success": "Your account and all your data have been deleted.",

        "oauth.google_not_configured": "Google login is not configured.",
        "oauth.apple_not_configured": "Apple login is not configured.",
        "oauth.token_required": "Authentication token is required.",
        "oauth.invalid_token": "Invalid authentication token.",
        "oauth.email_not_verified": "Email must be verified.",

        "box.title_required": "Give a title to what you want to keep.",
        "box.title_too_long": "Title too long.",
        "box.content_too_long": "Content too long.",
        "box.save_error": "Unable to save.",
        "box.not_found": "Item not found.",
        "box.deleted": "Item removed.",

        "guardian.name_required": "Please provide the person's name.",
        "guardian.not_found": "Person not found.",
        "guardian.deleted": "Person removed.",
        "guardian.notes_too_long": "Notes are too long. Maximum 1000 characters.",
        "guardian.pin_too_short": "PIN must be at least 4 characters.",

        "share.default_name": "Share Link",
        "share.create_error": "Unable to create link.",
        "share.not_found": "Link not found.",
        "share.deleted": "Link removed successfully.",
        "share.link_expired": "This link has expired or is no longer available.",
        "share.invalid_pin": "Incorrect PIN.",
        "share.access_error": "Unable to access content.",
        "share.memorial_message": "This is the memorial of {name}. The information here was left to help you.",
        "share.emergency_message": "Emergency access to {name}'s information.",

        "analytics.track_error": "Unable to record event.",
    },
}


def parse_locale(accept_language: str | None) -> str:
    """Accept-Language 헤더에서 지원 언어 선택"""
    if not accept_language:
        return DEFAULT_LOCALE

    for part in accept_language.split(","):
        lang = part.split(";")[0].strip().lower()
        if lang.startswith("pt"):
            return "pt-BR"
        if lang.startswith("en"):
            return "en"

    return DEFAULT_LOCALE


def tr(locale: str, key: str, **kwargs) -> str:
    """번역 (없으면 pt-BR, 그래도 없으면 키 그대로)"""
    message = TRANSLATIONS.get(locale, {}).get(key)
    if message is None:
        message = TRANSLATIONS[DEFAULT_LOCALE].get(key, key)
    return message.format(**kwargs) if kwargs else message


def get_locale(request: Request) -> str:
    return parse_locale(request.headers.get("accept-language"))
