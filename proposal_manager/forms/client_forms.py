"""
Forms for login and client registration.
Accept form posts and JSON bodies alike (Flask-WTF reads request JSON).
"""
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField
from wtforms.validators import DataRequired, Length, Optional, Regexp

EMAIL_REGEX = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


class LoginForm(FlaskForm):
    """Email/password login."""

    email = StringField(
        'Email',
        validators=[
            DataRequired(message='O email é obrigatório'),
            Regexp(EMAIL_REGEX, message='Email inválido')
        ]
    )

    password = PasswordField(
        'Senha',
        validators=[DataRequired(message='A senha é obrigatória')]
    )


class ClientForm(FlaskForm):
    """Client registration."""

    name = StringField(
        'Nome',
        validators=[
            DataRequired(message='O nome do cliente é obrigatório'),
            Length(max=200)
        ]
    )

    email = StringField(
        'Email',
        validators=[Optional(), Regexp(EMAIL_REGEX, message='Email inválido'), Length(max=255)]
    )

    phone = StringField('Telefone', validators=[Optional(), Length(max=50)])

    company = StringField('Empresa', validators=[Optional(), Length(max=200)])


def first_error(form) -> str:
    """First validation message of a form, for JSON error responses."""
    for errors in form.errors.values():
        if errors:
            return errors[0]
    return 'Dados inválidos.'
