from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Schema(BaseModel):
    # JSON field names are camelCase; Python code uses snake_case.
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class ImageSample(_Schema):
    url: str
    kind: str  # og, twitter, apple-touch-icon, content-image
    width: int | None = None
    height: int | None = None
    sizes: str | None = None
    alt: str | None = None


class IconEntry(_Schema):
    url: str
    kind: str  # link-icon, apple-touch-icon, manifest
    sizes: str | None = None
    type: str | None = None
    purpose: str | None = None


class ImageFacet(_Schema):
    primary: str | None = None
    count: int = 0
    samples: list[ImageSample] = []
    meta_images: list[ImageSample] = []
    content_image: ImageSample | None = None


class IconFacet(_Schema):
    primary: str
    count: int = 0
    all: list[IconEntry] = []


class BasicInfo(_Schema):
    title: str | None = None
    description: str | None = None
    keywords: list[str] | None = None
    author: str | None = None
    publisher: str | None = None
    content_type: str | None = None
    locale: str | None = None


class DateInfo(_Schema):
    published: str | None = None
    modified: str | None = None
    fetched: str | None = None


class TwitterInfo(_Schema):
    card: str | None = None
    site: str | None = None
    creator: str | None = None


class FacebookInfo(_Schema):
    app_id: str | None = None
    admins: str | None = None


class SocialInfo(_Schema):
    twitter: TwitterInfo = TwitterInfo()
    facebook: FacebookInfo = FacebookInfo()


class AppearanceInfo(_Schema):
    theme_color: str | None = None
    has_dark_mode: bool = False


class StructureInfo(_Schema):
    has_javascript: bool = False
    has_forms: bool = False
    has_video: bool = False
    dom_elements: int = 0
    image_count: int = 0
    page_size: str | None = None  # "12.34 KB"
    generator: str | None = None
    language: str | None = None


class PageMetadata(_Schema):
    basic: BasicInfo = BasicInfo()
    dates: DateInfo = DateInfo()
    social: SocialInfo = SocialInfo()
    appearance: AppearanceInfo = AppearanceInfo()
    structure: StructureInfo = StructureInfo()


class ResponseInfo(_Schema):
    status: int
    status_text: str | None = None
    content_type: str | None = None
    server: str | None = None
    powered_by: str | None = None
    final_url: str | None = None


class Headings(_Schema):
    h1: list[str] = []
    h2: list[str] = []
    h3: list[str] = []


class Technologies(_Schema):
    react: bool = False
    nextjs: bool = False
    vue: bool = False
    angular: bool = False
    wordpress: bool = False


class ExtendedInfo(_Schema):
    first_paragraph: str | None = None
    headings: Headings = Headings()
    technologies: Technologies = Technologies()
    language: str | None = None
    charset: str | None = None
    viewport: str | None = None
    robots: str | None = None


class MetadataRecord(_Schema):
    success: bool = True
    url: str
    canonical: str | None = None
    title: str | None = None
    description: str | None = None
    site_name: str | None = None
    hostname: str
    domain: str
    protocol: str | None = None
    metadata: PageMetadata = PageMetadata()
    images: ImageFacet = ImageFacet()
    icons: IconFacet
    response_info: ResponseInfo | None = None
    extended: ExtendedInfo | None = None


class ErrorResponse(_Schema):
    success: bool = False
    error: str
    message: str
    details: str | None = None
    timestamp: str | None = None
