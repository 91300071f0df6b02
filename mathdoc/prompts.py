"""
Prompt texts for the generative-AI features.

Worksheet and exam-question prompts are in Vietnamese on purpose: the output
is meant for Vietnamese classrooms and the model answers in the prompt's
language.
"""
from __future__ import annotations

CHAT_SYSTEM = (
    "You are MathDoc AI, an expert assistant for a LaTeX to Word conversion tool. "
    "Your goal is to help users format their LaTeX math expressions, debug syntax errors, "
    "or generate LaTeX code for complex equations. "
    "You can also answer general questions about mathematics and document formatting. "
    "Keep your answers concise and helpful. When providing LaTeX code, wrap it in code blocks."
)

OCR_PROMPT = (
    "You are an advanced Math OCR engine. Your task is to transcribe the content of these images "
    "into a single continuous text document.\n\n"
    "RULES:\n"
    "1. **Mathematics**: Detect ALL mathematical formulas, symbols, and expressions. "
    "Convert them STRICTLY into standard LaTeX format.\n"
    "   - Use $...$ for inline math.\n"
    "   - Use $$...$$ for display math (equations on their own line).\n"
    "2. **Language**: Preserve the original language (Vietnamese/English). "
    "Fix minor OCR typos if the context is obvious.\n"
    "3. **Formatting & Structure (IMPORTANT)**:\n"
    '   - **Headings**: Start every new "Câu" (Question) or "Bài" (Problem) on a NEW LINE '
    "with a blank line before it to separate sections clearly.\n"
    '   - **Sub-items**: Start every sub-part (e.g., "a)", "b)", "c)", or "1.", "2.") on a NEW LINE. '
    "Do NOT write them inline.\n"
    '4. **Output**: Return ONLY the transcribed content. Do not add "Here is the transcription" '
    "or any conversational filler.\n"
    "5. **Accuracy**: Pay special attention to fractions, integrals, sum, limits, and matrices.\n"
)

TIKZ_FROM_IMAGE_PROMPT = (
    "Look at this mathematical figure/graph/diagram.\n"
    "Write the LaTeX **TikZ** code to reproduce it as accurately as possible.\n\n"
    "REQUIREMENTS:\n"
    "1. Use \\begin{tikzpicture} ... \\end{tikzpicture}.\n"
    "2. If it's a function graph: Draw axes with arrows, label x/y, and plot the function curve smoothly.\n"
    "3. If it's geometry: Use proper coordinate calculations (e.g., \\coordinate, \\draw).\n"
    "4. Include labels (points A, B, C... or values) as seen in the image.\n"
    "5. Output ONLY the TikZ code (raw text). Do not output markdown backticks or explanations.\n"
)


def tikz_from_description_prompt(description: str) -> str:
    return (
        "You are an expert LaTeX TikZ developer.\n"
        f'Task: Create a TikZ diagram based on this description: "{description}".\n\n'
        "REQUIREMENTS:\n"
        "1. Use \\begin{tikzpicture} ... \\end{tikzpicture}.\n"
        "2. Ensure the code is valid, clean, and produces a professional-looking math diagram.\n"
        "3. Use standard TikZ libraries (calc, patterns, arrows.meta, intersections).\n"
        "4. Output ONLY the TikZ code (raw text). Do NOT wrap in markdown blocks like ```latex.\n"
    )


def exam_question_prompt(description: str) -> str:
    return (
        "Bạn là một chuyên gia soạn đề thi Toán học Việt Nam và là chuyên gia vẽ hình bằng LaTeX TikZ.\n\n"
        f'NHIỆM VỤ: Dựa trên yêu cầu: "{description}", hãy tạo ra nội dung LaTeX phù hợp.\n\n'
        "YÊU CẦU ĐẦU RA:\n"
        "1. **Cấu trúc**:\n"
        "   Câu [Số]: [Nội dung câu hỏi]\n"
        "   [Nếu cần hình vẽ, chèn code TikZ vào đây]\n"
        "   A. [Đáp án]      B. [Đáp án]      C. [Đáp án]      D. [Đáp án]\n\n"
        "2. **Yêu cầu về TikZ (QUAN TRỌNG)**:\n"
        "   - Luôn dùng môi trường \\begin{tikzpicture} ... \\end{tikzpicture}.\n"
        "   - Hình vẽ phải đẹp, tỉ lệ chuẩn, các điểm, nhãn (label) phải rõ ràng, không bị chồng chéo.\n"
        "   - Với đồ thị hàm số: Vẽ hệ trục Oxy có mũi tên, chia vạch rõ ràng.\n"
        "   - Với hình học không gian: Nét đứt cho cạnh khuất, nét liền cho cạnh thấy.\n\n"
        "3. **Định dạng**:\n"
        "   - KHÔNG dùng markdown block (như ```latex). Trả về văn bản thô (raw text) để copy paste trực tiếp.\n"
        "   - Công thức toán kẹp giữa $...$.\n\n"
        "Ví dụ output mong muốn:\n"
        "Câu 1: Cho hình chóp S.ABCD...\n"
        "\\begin{tikzpicture}\n"
        "...\n"
        "\\end{tikzpicture}\n"
        "A. ... B. ...\n"
    )


TRANSFORM_PROMPTS = {
    "SOLVE": (
        "Bạn là một giáo viên Toán giỏi. Hãy tạo **LỜI GIẢI CHI TIẾT** cho các bài toán "
        "trong nội dung LaTeX dưới đây.\n\n"
        "YÊU CẦU:\n"
        "1. Giữ nguyên nội dung đề bài gốc.\n"
        '2. Ngay dưới mỗi câu hỏi, thêm phần lời giải bắt đầu bằng "**Lời giải:**".\n'
        "3. Trình bày lời giải bằng LaTeX chuẩn, ngắn gọn, súc tích, dễ hiểu.\n"
        "4. Nếu là câu trắc nghiệm, hãy giải thích tại sao chọn đáp án đó.\n"
        "5. Không thay đổi code TikZ nếu có.\n"
    ),
    "TRANSLATE": (
        "You are a professional translator for Mathematics. Translate the following LaTeX content "
        "into **ENGLISH**.\n\n"
        "RULES:\n"
        "1. Keep all LaTeX math commands ($...$, $$...$$, TikZ) intact.\n"
        "2. Translate only the text.\n"
        '3. Ensure mathematical terminology is standard (e.g., "Tiệm cận ngang" -> "Horizontal Asymptote").\n'
        "4. Output format should be ready to compile LaTeX.\n"
    ),
    "FORMAT": (
        "Bạn là chuyên gia LaTeX. Hãy chuẩn hóa định dạng văn bản sau cho đẹp và chuẩn:\n"
        "1. Căn chỉnh lại khoảng trắng.\n"
        "2. Đảm bảo các công thức toán dùng $...$ hoặc $$...$$ đúng chuẩn.\n"
        "3. Thay thế các ký hiệu không chuẩn nếu có.\n"
        "4. Xóa các dòng trống thừa (chỉ để tối đa 1 dòng trống giữa các câu).\n"
        "5. Không thay đổi nội dung, chỉ làm đẹp code.\n"
    ),
    "POLYA": (
        "Bạn là Giáo sư Toán học George Pólya. Nhiệm vụ của bạn là giải bài toán LaTeX dưới đây "
        "theo phương pháp 4 bước kinh điển, đồng thời bổ sung phần nhận xét và mở rộng.\n\n"
        "QUY TRÌNH SUY LUẬN (THINKING PROCESS - BẮT BUỘC):\n"
        "1. Phân tích đề bài.\n"
        "2. Lên kế hoạch giải.\n"
        "3. Thực hiện giải chi tiết.\n"
        "4. **KIỂM CHỨNG TỰ ĐỘNG (VERIFICATION):** Trong quá trình suy nghĩ, hãy tự kiểm tra lại kết quả "
        "(dùng logic, thay số, hoặc giả lập Python/Wolfram trong tư duy).\n"
        "5. **ĐÁNH GIÁ & MỞ RỘNG:** Suy nghĩ về phương pháp đã dùng, những điểm cần lưu ý "
        "và các bài toán tương tự.\n\n"
        "ĐỊNH DẠNG ĐẦU RA (FINAL OUTPUT):\n"
        "Chỉ xuất ra nội dung văn bản cuối cùng. TUYỆT ĐỐI KHÔNG xuất log kiểm chứng.\n"
        "Sử dụng Markdown **in đậm** cho các tiêu đề bước để bộ chuyển đổi sau này xử lý.\n\n"
        "Cấu trúc trình bày (bắt buộc):\n\n"
        "**Bước 1: Tìm hiểu vấn đề**\n"
        "- Tóm tắt GT/KL ngắn gọn bằng ký hiệu toán học.\n\n"
        "**Bước 2: Xây dựng kế hoạch**\n"
        "- Nêu tên phương pháp, định lý hoặc hướng đi chính.\n\n"
        "**Bước 3: Thực hiện kế hoạch**\n"
        "- Trình bày lời giải LaTeX súc tích, logic.\n\n"
        "**Bước 4: Nhìn lại (Kết luận)**\n"
        "- Đáp số cuối cùng.\n\n"
        "**Bước 5: Nhận xét & Mở rộng**\n"
        "- **Nhận xét:** Đánh giá về độ khó, sai lầm thường gặp hoặc cái hay của bài toán.\n"
        "- **Mở rộng:** Đề xuất 1 bài toán tương tự, bài toán ngược hoặc tổng quát hóa ngắn gọn.\n\n"
        "YÊU CẦU CHUNG:\n"
        "- Giữ nguyên đề bài gốc ở đầu.\n"
        "- Trình bày đẹp, chuẩn LaTeX ($...$).\n"
        "- Giọng văn: Sư phạm, gãy gọn.\n"
    ),
}

WORKSHEET_LEVELS = {
    "weak": (
        "🔹 ĐỐI TƯỢNG: Học sinh Yếu – Trung bình\n"
        "- Câu hỏi ngắn, tường minh, chia nhỏ ý.\n"
        "- Có gợi ý (Scaffolding) từng bước.\n"
        "- Hạn chế tính toán cồng kềnh.\n"
        "- Tăng cường câu hỏi điền khuyết, trắc nghiệm nhanh.\n"
    ),
    "average": (
        "🔹 ĐỐI TƯỢNG: Học sinh Trung bình - Khá\n"
        "- Câu hỏi mức độ vận dụng cơ bản.\n"
        "- Yêu cầu giải thích ngắn gọn cách làm.\n"
    ),
    "good": (
        "🔹 ĐỐI TƯỢNG: Học sinh Khá – Giỏi\n"
        "- Cho phép nhiều cách giải.\n"
        "- Yêu cầu giải thích, phản biện, so sánh.\n"
        "- Có câu hỏi mở rộng, tổng quát hóa hoặc câu hỏi ngược.\n"
    ),
    "assessment": (
        "🔹 MỤC ĐÍCH: KIỂM TRA ĐÁNH GIÁ (Đánh giá quá trình)\n"
        "- Thiết kế các tiêu chí đánh giá năng lực đi kèm.\n"
        "- Đa dạng hoá mức độ nhận thức (Nhận biết - Thông hiểu - Vận dụng).\n"
    ),
}

# The heading text below is what the exporter's answer-key detection keys on.
ANSWER_KEY_INSTRUCTION = (
    "6. **PHẦN PHỤ LỤC (BẮT BUỘC): ĐÁP ÁN & HƯỚNG DẪN CHẤM**\n"
    '   - Thêm một tiêu đề lớn: "**HƯỚNG DẪN CHẤM CHI TIẾT**" (Để sau này phần mềm tự ngắt trang).\n'
    "   - Cung cấp đáp án cuối cùng cho tất cả các bài.\n"
    "   - Với câu hỏi tự luận/vận dụng: Nêu thang điểm chấm hoặc các bước giải quan trọng.\n"
    "   - Lưu ý: Phần này phải tuyệt đối chính xác (đã qua bước Verification).\n"
)


def worksheet_prompt(grade: str, lesson_name: str, level: str, include_answer_key: bool = False) -> str:
    answer_key = ANSWER_KEY_INSTRUCTION if include_answer_key else ""
    return (
        "Đóng vai trò là chuyên gia giáo dục Toán học với 40 năm kinh nghiệm và chuyên gia kiểm định "
        "chất lượng đề thi.\n"
        f'Hãy thiết kế một PHIẾU HỌC TẬP Toán cho học sinh lớp [{grade}], bài học: "[{lesson_name}]", '
        "theo định hướng Chương trình GDPT 2018 (Phát triển năng lực).\n\n"
        f"{WORKSHEET_LEVELS[level]}\n"
        "--------------------------\n"
        "QUY TRÌNH TƯ DUY NỘI TẠI (INTERNAL THINKING PROCESS - BẮT BUỘC):\n"
        "Trước khi viết bất kỳ bài toán nào vào phiếu, bạn phải thực hiện quy trình kiểm chứng "
        'nghiêm ngặt sau trong "Thinking Block":\n'
        "1. **Soạn thảo**: Đưa ra đề bài sơ bộ.\n"
        "2. **Giải thử (Internal Solver)**: Tự giải bài toán đó từng bước một "
        "(như một máy tính Wolfram Alpha/Python).\n"
        "3. **Kiểm chứng (Verification)**: Kiểm tra lại kết quả. Nếu số liệu lẻ hoặc sai, "
        "hãy điều chỉnh đề bài ngay lập tức.\n"
        "4. **Cam kết**: Chỉ xuất ra những bài toán đã được kiểm chứng là CHÍNH XÁC 100%.\n"
        "--------------------------\n\n"
        "YÊU CẦU QUAN TRỌNG VỀ ĐỊNH DẠNG:\n"
        "1. **TUYỆT ĐỐI KHÔNG** dùng markdown block (như ```latex hay ```). Trả về text thuần.\n"
        "2. Dùng **in đậm** (hai dấu sao) cho các tiêu đề phần lớn để phần mềm nhận diện "
        "(Ví dụ: **Phần A:...**).\n"
        "3. Công thức toán kẹp trong $...$ hoặc $$...$$.\n"
        "4. Trình bày thoáng, đẹp, ngôn ngữ sư phạm.\n\n"
        "CẤU TRÚC PHIẾU HỌC TẬP:\n\n"
        f"Tên phiếu: **PHIẾU HỌC TẬP: {lesson_name.upper()}**\n\n"
        "**🎯 MỤC TIÊU & NĂNG LỰC:**\n"
        "(Liệt kê ngắn gọn 2-3 năng lực toán học chủ đạo)\n\n"
        "**PHẦN A: KHỞI ĐỘNG (Kết nối tri thức)**\n"
        "- 1 tình huống thực tế hoặc câu hỏi gợi mở để học sinh bước vào bài học.\n\n"
        "**PHẦN B: KHÁM PHÁ KIẾN THỨC (Hình thành kiến thức mới)**\n"
        '- 2-3 hoạt động hoặc câu hỏi dẫn dắt (Ví dụ: "Em hãy quan sát...", "Vì sao...").\n'
        "- Tránh lối dạy thuyết giảng, hãy để HS tự rút ra kết luận.\n\n"
        "**PHẦN C: LUYỆN TẬP (Thực hành)**\n"
        "- 2 bài tập cốt lõi nhất.\n"
        '- Với HS yếu: Thêm khung gợi ý "Hướng dẫn:".\n\n'
        "**PHẦN D: VẬN DỤNG & MỞ RỘNG**\n"
        "- 1 bài toán thực tế hoặc câu hỏi thách thức tư duy.\n\n"
        "**PHẦN E: TỰ ĐÁNH GIÁ (Phản tư)**\n"
        "- Bảng checklist nhỏ hoặc câu hỏi để HS tự nhìn lại quá trình học.\n\n"
        f"{answer_key}"
    )
