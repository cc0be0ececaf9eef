import re
from typing import Callable, Dict, Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions.register_exceptions import (
    RegisterPageError,
    SearchFormNotFound,
)
from app.core.logger import logger
from app.core.sia_license import clean_licence_number, is_licence_number

USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
)


class SIARegisterResult(BaseModel):
    found: bool
    first_name: Optional[str] = None
    surname: Optional[str] = None
    licence_number: Optional[str] = None
    role: Optional[str] = None
    licence_sector: Optional[str] = None
    expiry_date: Optional[str] = None
    status: Optional[str] = None
    status_explanation: Optional[str] = None
    error: Optional[str] = None


class SearchSubmission(BaseModel):
    action_url: str
    data: Dict[str, str]


def _clean_text(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return ' '.join(value.split()) or None


def _text(tag: Tag) -> str:
    return ' '.join(tag.get_text(' ').split())


def _is_text_input(tag: Tag) -> bool:
    return tag.name == 'input' and tag.get('type', 'text').lower() == 'text'


def _is_submit(tag: Tag) -> bool:
    return tag.name in ('input', 'button') and tag.get('type', '').lower() == 'submit'


def _is_search_container(tag: Tag) -> bool:
    if tag.name in ('form', 'fieldset'):
        return True
    classes = set(tag.get('class') or [])
    return tag.name == 'div' and bool(classes & {'row', 'search-panel'})


class RegisterPageParser:
    """
    Reads the public register search page and its result page.

    Swap this class out to follow markup changes on the register, or for a
    client of an official API, without touching the scan flow.
    """

    LICENCE_INPUT_NAME = 'LicenseNo'
    LICENCE_LABEL = 'Licence number'
    HINT_TEXT = '16 digit number'
    FALLBACK_ACTION = '/PublicRegister/SearchPublicRegisterByLicence'

    RESULT_FIELDS = {
        'first_name': 'First name',
        'surname': 'Surname',
        'licence_number': 'Licence number',
        'role': 'Role',
        'licence_sector': 'Licence sector',
        'expiry_date': 'Expiry date',
        'status': 'Status',
        'status_explanation': 'Status explanation',
    }

    def build_submission(
        self, html: str, page_url: str, licence_number: str
    ) -> SearchSubmission:
        soup = BeautifulSoup(html, 'html.parser')

        licence_input = self._find_licence_input(soup)
        if licence_input is None:
            logger.warning(
                'Licence input not found. Inputs on page: %s',
                [i.get('name') for i in soup.find_all('input')],
            )
            raise SearchFormNotFound()

        form = licence_input.find_parent('form')
        if form is None:
            logger.warning('Licence input found but has no parent form')

        # Hidden fields carry the anti-forgery token of the session
        scope = form if form is not None else soup
        data = {}
        for hidden in scope.find_all('input', attrs={'type': 'hidden'}):
            if hidden.get('name'):
                data[hidden['name']] = hidden.get('value', '')
        data[licence_input['name']] = licence_number

        button = self._find_submit_button(soup, licence_input, form)
        if button is not None and button.get('name'):
            value = button.get('value') or _text(button) or 'Search'
            logger.info('Using submit control %s=%s', button['name'], value)
            data[button['name']] = value

        action = form.get('action') if form is not None else None
        if not action:
            logger.info('Could not find form action, using default fallback')
            action = self.FALLBACK_ACTION

        return SearchSubmission(action_url=urljoin(page_url, action), data=data)

    def _find_licence_input(self, soup: BeautifulSoup) -> Optional[Tag]:
        licence_input = soup.find('input', attrs={'name': self.LICENCE_INPUT_NAME})
        if licence_input is not None:
            return licence_input

        for label in soup.find_all('label'):
            if self.LICENCE_LABEL.lower() not in _text(label).lower():
                continue
            target = label.get('for')
            if target:
                by_id = soup.find(id=target)
                if by_id is not None and by_id.get('name'):
                    return by_id
            break

        # The last matching input wins
        by_name = [
            candidate
            for candidate in soup.find_all(_is_text_input)
            if 'licence' in (candidate.get('name') or '').lower()
            or 'number' in (candidate.get('name') or '').lower()
        ]
        if by_name:
            return by_name[-1]

        hint = soup.find(string=re.compile(re.escape(self.HINT_TEXT)))
        if hint is not None:
            container = hint.find_parent('div')
            if container is not None:
                nearby = container.find(_is_text_input)
                if nearby is not None and nearby.get('name'):
                    return nearby

        return None

    def _find_submit_button(
        self, soup: BeautifulSoup, licence_input: Tag, form: Optional[Tag]
    ) -> Optional[Tag]:
        container = licence_input.find_parent(_is_search_container)
        if container is not None:
            button = container.find(_is_submit)
            if button is not None:
                return button

        # The page holds more than one search form, each with its own button
        candidates = [
            tag
            for tag in soup.find_all(['input', 'button'])
            if (tag.name == 'input' and _is_submit(tag) and tag.get('value') == 'Search')
            or (tag.name == 'button' and 'Search' in _text(tag))
        ]
        if form is not None:
            for candidate in candidates:
                if candidate.find_parent('form') is form:
                    return candidate

        return candidates[-1] if candidates else None

    def parse_results(self, html: str) -> SIARegisterResult:
        soup = BeautifulSoup(html, 'html.parser')
        page_text = _text(soup)
        title = soup.title.get_text().strip() if soup.title else ''
        logger.info('Register response page title: %s', title)

        count_match = re.search(r'\b(\d+) licences? found', page_text)
        licences_found = int(count_match.group(1)) if count_match else None

        if 'No results found' in page_text or licences_found == 0:
            return SIARegisterResult(found=False)

        has_results_header = any(
            'Search Results' in _text(header) for header in soup.find_all(['h2', 'h3'])
        )
        if not has_results_header and not licences_found:
            return self._classify_failure(soup, page_text)

        values = {
            field: _clean_text(self._value_by_label(soup, label))
            for field, label in self.RESULT_FIELDS.items()
        }
        result = SIARegisterResult(found=True, **values)

        if result.status and '(as on' in result.status:
            result.status = result.status.split('(as on')[0].strip()

        return result

    def _classify_failure(
        self, soup: BeautifulSoup, page_text: str
    ) -> SIARegisterResult:
        errors = soup.select('.validation-summary-errors, .field-validation-error')
        if errors:
            message = ' '.join(_text(e) for e in errors).strip()
            logger.warning('Register validation error: %s', message)
            return SIARegisterResult(
                found=False, error=f'SIA Website Validation Error: {message}'
            )

        if 'captcha' in page_text.lower() or soup.find(
            class_=re.compile(r'g-recaptcha|h-captcha')
        ):
            logger.warning('Register asked for a CAPTCHA')
            return SIARegisterResult(found=False, error='SIA Website requires CAPTCHA')

        logger.warning('Unexpected register response structure')
        return SIARegisterResult(
            found=False, error='Unexpected response from SIA website'
        )

    def _value_by_label(self, soup: BeautifulSoup, label: str) -> Optional[str]:
        # The innermost element with the exact label text comes last in document order
        matches = [tag for tag in soup.find_all(True) if _text(tag) == label]
        if not matches:
            return None
        label_tag = matches[-1]

        if label_tag.name == 'dt':
            value = label_tag.find_next_sibling('dd')
            if value is not None:
                return _text(value)

        sibling = label_tag.find_next_sibling()
        if sibling is not None and _text(sibling):
            return _text(sibling)

        if label_tag.parent is not None:
            sibling = label_tag.parent.find_next_sibling()
            if sibling is not None and _text(sibling):
                return _text(sibling)

        return None


class SIARegisterClient:
    """Looks licence numbers up on the public register. Never raises."""

    def __init__(
        self,
        url: str = settings.SIA_REGISTER_URL,
        timeout: int = settings.SIA_REGISTER_TIMEOUT,
        parser: Optional[RegisterPageParser] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.url = url
        self.timeout = timeout
        self.parser = parser or RegisterPageParser()
        self._session_factory = session_factory

    def _origin(self) -> str:
        parsed = urlparse(self.url)
        return f'{parsed.scheme}://{parsed.netloc}'

    def lookup(self, licence_number: str) -> SIARegisterResult:
        clean_number = clean_licence_number(licence_number)
        if not is_licence_number(clean_number):
            return SIARegisterResult(
                found=False, error='Invalid SIA number format. Must be 16 digits.'
            )

        logger.info('Searching SIA register for number: %s', clean_number)
        try:
            return self._search(clean_number)
        except RegisterPageError as e:
            logger.warning('SIA register page error: %s', e.detail)
            return SIARegisterResult(found=False, error=e.detail)
        except requests.RequestException as e:
            logger.error('SIA register request failed: %s', str(e))
            return SIARegisterResult(found=False, error=str(e))
        except Exception as e:
            logger.error('SIA register search error: %s', str(e))
            return SIARegisterResult(
                found=False, error='Internal server error during SIA search'
            )

    def _search(self, licence_number: str) -> SIARegisterResult:
        with self._session_factory() as session:
            session.headers.update({'User-Agent': USER_AGENT})

            # The session keeps the cookies of the search page for the POST
            page = session.get(
                self.url,
                headers={
                    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
                    'Accept-Language': 'en-GB,en;q=0.5',
                },
                timeout=self.timeout,
            )
            page.raise_for_status()

            submission = self.parser.build_submission(
                page.text, self.url, licence_number
            )
            logger.info('Submitting register search to %s', submission.action_url)

            response = session.post(
                submission.action_url,
                data=submission.data,
                headers={'Origin': self._origin(), 'Referer': self.url},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return self.parser.parse_results(response.text)
