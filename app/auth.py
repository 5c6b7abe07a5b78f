from urllib.parse import urlparse

from flask import Blueprint, render_template, redirect, url_for, request
from flask_login import login_user, logout_user, login_required, current_user

from app import limiter
from app.buisness.core.errors import AuthenticationFailed, MailDeliveryFailed
from app.buisness.core.field_rules import coerce_bool
from app.buisness.core.user_context import UserContext
from app.data.core.user_info.password_validator import PasswordValidator
from app.logger import get_logger
from app.presentation.responses import ActionResult, request_data, respond
from app.utils.logging_sanitizer import sanitize_dict, sanitize_path

logger = get_logger("clothing_store.auth")
auth = Blueprint('auth', __name__)


def _verification_link(token):
    return url_for('auth.verify_email', token=token, _external=True)


def _reset_link(token):
    return url_for('auth.reset_password_page', token=token, _external=True)


def _safe_next(candidate):
    if not candidate or urlparse(candidate).netloc != '':
        return url_for('main.index')
    return candidate


# ========== Pages ==========

@auth.route('/login')
def login_page():
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))
    return render_template('auth/login.html', next=request.args.get('next', ''))


@auth.route('/register')
def register_page():
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))
    return render_template('auth/register.html',
                           password_requirements=PasswordValidator.get_requirements_text())


@auth.route('/email/pending/<int:user_id>')
def verify_pending(user_id):
    return render_template('auth/verify_pending.html', user_id=user_id)


@auth.route('/password/forgot')
def forgot_password_page():
    return render_template('auth/forgot_password.html')


@auth.route('/password/reset/<token>')
def reset_password_page(token):
    return render_template('auth/reset_password.html', token=token,
                           password_requirements=PasswordValidator.get_requirements_text())


# ========== Registration & verification ==========

@auth.route('/signup', methods=['POST'])
@limiter.limit("10 per hour")
def signup():
    data = request_data()
    logger.debug(f"Registration attempt: {sanitize_dict(data)}")

    ctx = UserContext.register(data)
    payload = {'user_id': ctx.user_id}
    message = 'Registered. Check your email for the verification link'
    try:
        ctx.send_verification_mail(_verification_link)
    except MailDeliveryFailed:
        # The account exists either way; the user can ask for a new link
        logger.warning(f"Verification mail for user {ctx.user_id} not sent")
        payload['resend_url'] = url_for(request.blueprint + '.resend_verification', user_id=ctx.user_id)
        message = 'Registered, but the verification email could not be sent. Use the resend link to try again'

    return respond(
        ActionResult.success(payload, status=201, message=message),
        redirect_to=url_for('auth.verify_pending', user_id=ctx.user_id),
    )


@auth.route('/email/verify/<token>')
def verify_email(token):
    logger.debug(f"Verification link opened: {sanitize_path(request.path)}")
    UserContext.verify_email(token)
    return respond(
        ActionResult.success(message='Email verified. You can now sign in'),
        redirect_to=url_for('auth.login_page'),
    )


@auth.route('/email/resend/<int:user_id>')
@limiter.limit("5 per hour")
def resend_verification(user_id):
    ctx = UserContext.load(user_id)
    if ctx.user.is_verified:
        return respond(
            ActionResult.success(message='Email already verified'),
            redirect_to=url_for('auth.login_page'),
        )

    ctx.send_verification_mail(_verification_link)
    logger.info(f"Verification link re-sent to user {user_id}")
    return respond(
        ActionResult.success(message='Verification link sent'),
        redirect_to=url_for('auth.verify_pending', user_id=user_id),
    )


# ========== Sessions ==========

@auth.route('/signin', methods=['POST'])
@limiter.limit("10 per minute")
def signin():
    data = request_data()
    email = data.get('email')
    logger.debug(f"Login attempt for email: {email}")

    try:
        user = UserContext.authenticate(email, data.get('password'))
    except AuthenticationFailed:
        # Never leave a half-open session behind a rejected sign-in
        logout_user()
        raise

    login_user(user, remember=bool(coerce_bool(data, 'remember')))
    logger.info(f"Successful login for user: {user.id}")

    return respond(
        ActionResult.success({'user': UserContext(user).to_dict()}, message='Successfully Logged In'),
        redirect_to=_safe_next(request.args.get('next') or data.get('next')),
    )


@auth.route('/logout')
@login_required
def logout():
    user_id = current_user.id
    logout_user()
    logger.info(f"User logged out: {user_id}")
    return respond(
        ActionResult.success(message='Successfully Logged Out'),
        redirect_to=url_for('auth.login_page'),
    )


@auth.route('/me')
@login_required
def me():
    return respond(
        ActionResult.success({'user': UserContext(current_user).to_dict()}),
        redirect_to=url_for('main.index'),
    )


# ========== Passwords ==========

@auth.route('/password/change', methods=['POST'])
@login_required
def change_password():
    data = request_data()
    UserContext(current_user).change_password(data.get('password'))
    return respond(
        ActionResult.success(message='Password changed'),
        redirect_to=url_for('main.index'),
    )


@auth.route('/password/forgot', methods=['POST'])
@limiter.limit("5 per hour")
def forgot_password():
    data = request_data()
    UserContext.request_password_reset(data.get('email'), _reset_link)
    return respond(
        ActionResult.success(message='Password reset link sent to your email'),
        redirect_to=url_for('auth.login_page'),
    )


@auth.route('/password/reset/<token>', methods=['POST'])
def reset_password(token):
    logger.debug(f"Password reset submitted: {sanitize_path(request.path)}")
    data = request_data()
    UserContext.reset_password(token, data.get('password'))
    return respond(
        ActionResult.success(message='Password has been reset. You can now sign in'),
        redirect_to=url_for('auth.login_page'),
    )
